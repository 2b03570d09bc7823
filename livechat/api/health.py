from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Request, status

from livechat.database import check_database_health

router = APIRouter(tags=["Health"])


def _describe(state: Optional[bool]) -> str:
    if state is None:
        return "disabled"
    return "connected" if state else "disconnected"


def _fanout_state(request: Request) -> str:
    """Redis 팬아웃 리스너 상태 (local 백엔드면 disabled)"""
    realtime = getattr(request.app.state, "realtime", None)
    if realtime is None or realtime.fanout is None:
        return "disabled"
    return realtime.fanout.state


def _delivery_ok(fanout_state: str) -> bool:
    return fanout_state in ("disabled", "subscribed")


@router.get("/health")
async def health_check(request: Request):
    """서비스 및 저장소 연결 상태"""
    db_health = await check_database_health()
    realtime = getattr(request.app.state, "realtime", None)
    fanout_state = _fanout_state(request)
    healthy = db_health["overall"] and _delivery_ok(fanout_state)

    return {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.utcnow(),
        "service": "livechat",
        "databases": {
            "mongodb": _describe(db_health["mongodb"]),
            "redis": _describe(db_health["redis"]),
        },
        "realtime": {
            "connections": len(realtime.registry) if realtime else 0,
            "active_rooms": len(realtime.groups.rooms()) if realtime else 0,
            "fanout": fanout_state,
        },
    }


@router.get("/health/ready")
async def readiness_check(request: Request):
    """Kubernetes readiness probe"""
    db_health = await check_database_health()
    if not db_health["overall"]:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storage backends are not reachable"
        )

    if not _delivery_ok(_fanout_state(request)):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Realtime fan-out is not subscribed"
        )
    return {"status": "ready"}


@router.get("/health/live")
async def liveness_check():
    """Kubernetes liveness probe"""
    return {"status": "alive", "timestamp": datetime.utcnow()}
