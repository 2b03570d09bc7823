import importlib
import pkgutil


def include_routers(app, package_name, package_path):
    """패키지 안에서 `router`를 가진 모듈을 찾아 앱에 등록"""
    for module_info in pkgutil.iter_modules(package_path):
        if module_info.name.startswith("_"):
            continue
        module = importlib.import_module(f"livechat.{package_name}.{module_info.name}")
        router = getattr(module, "router", None)
        if router is not None:
            app.include_router(router)
