"""
FastAPI surface for the attendance kiosk.

Each application instance owns one KioskService, created by ``create_app`` and
kept on ``app.state``. Failures are returned as structured results carrying the
error kind and a human-readable message.
"""

from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..core.config import VERSION, debug_enabled
from ..core.db import health_check
from ..core.errors import KioskError
from ..core.service import KioskService
from ..core.signatures import decode_image
from .schemas import (
    AttendanceLogItem,
    AttendanceLogResponse,
    ClockInData,
    ClockInRequest,
    ClockInResponse,
    DeleteResponse,
    EnrollRequest,
    EnrollResponse,
    ErrorResponse,
    HealthResponse,
    IdentityResponse,
    RegisterRequest,
    RegisterResponse,
    SyncResponse,
    SyncUser,
)

from util.logging import logger

ERROR_STATUS = {
    "INVALID_INPUT": 400,
    "SIGNATURE_ERROR": 400,
    "LENGTH_MISMATCH": 400,
    "IDENTITY_NOT_FOUND": 404,
    "EMPTY_STORE": 404,
    "DUPLICATE_IDENTITY": 409,
    "COLLABORATOR_ERROR": 502,
    "COLLABORATOR_TIMEOUT": 504,
}


def get_service(request: Request) -> KioskService:
    return request.app.state.service


def create_app(service: KioskService = None, db_path: str = None) -> FastAPI:
    """Build the API around ``service``, or one built from configuration."""
    service = service or KioskService.from_config(db_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.service.shutdown()

    app = FastAPI(
        title="Attendance Kiosk API",
        version=VERSION,
        description="Face-signature attendance kiosk with an in-memory Hamming index",
        docs_url="/docs" if debug_enabled() else None,
        redoc_url="/redoc" if debug_enabled() else None,
        lifespan=lifespan,
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(KioskError)
    async def kiosk_error_handler(request: Request, exc: KioskError):
        status_code = ERROR_STATUS.get(exc.kind, 500)
        logger.log_operation("api.error", "rejected", {"path": request.url.path, "kind": exc.kind, "message": exc.message})
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(error=exc.kind, message=exc.message, details=exc.details or None).model_dump(),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(error="INTERNAL_ERROR", message="Internal server error").model_dump(),
        )

    @app.get("/health", response_model=HealthResponse)
    def health_check_endpoint(svc: KioskService = Depends(get_service)):
        """Check system health."""
        db_health = health_check(getattr(svc.ledger, "db_path", None))
        acceleration = svc.store.ranker.acceleration
        return HealthResponse(
            status="healthy" if db_health else "unhealthy",
            version=VERSION,
            db_health=db_health,
            enrolled=len(svc.store),
            acceleration=bool(acceleration is not None and acceleration.available),
        )

    @app.post("/register", response_model=RegisterResponse)
    def register_endpoint(req: RegisterRequest, svc: KioskService = Depends(get_service)):
        identity = svc.register(req.name, req.email, decode_image(req.face_image))
        return RegisterResponse(data=IdentityResponse(
            id=identity.id, name=identity.name, email=identity.email, created_at=identity.created_at
        ))

    @app.post("/enroll/{user_id}", response_model=EnrollResponse)
    def enroll_endpoint(user_id: str, req: EnrollRequest, svc: KioskService = Depends(get_service)):
        record = svc.enroll(user_id, decode_image(req.face_image), req.metadata)
        return EnrollResponse(user_id=record.id, bit_length=record.bit_length)

    @app.post("/clockin", response_model=ClockInResponse)
    def clock_in_endpoint(req: ClockInRequest, svc: KioskService = Depends(get_service)):
        """Recognize a face and toggle the matched identity's attendance."""
        result = svc.clock_in(decode_image(req.face_image), identity_id=req.user_id)
        data = ClockInData(
            user_id=result.identity_id,
            name=result.name,
            status=result.action.value if result.action else None,
            timestamp=result.timestamp,
            record_id=result.record_id,
            hamming=result.distance,
            max_hamming=result.threshold,
        )
        response = ClockInResponse(success=result.success, message=result.message, data=data)
        if not result.success:
            return JSONResponse(status_code=400, content=response.model_dump(mode="json"))
        return response

    @app.get("/logs", response_model=AttendanceLogResponse)
    def logs_endpoint(user_id: str = None, status: str = None, limit: int = 50,
                      svc: KioskService = Depends(get_service)):
        if limit < 1 or limit > 500:
            raise HTTPException(status_code=400, detail="limit must be between 1 and 500")
        entries = svc.ledger.list_entries(user_id=user_id, status=status, limit=limit + 1)
        return AttendanceLogResponse(
            logs=[
                AttendanceLogItem(id=e.record_id, user_id=e.user_id, status=e.action.value, timestamp=e.timestamp)
                for e in entries[:limit]
            ],
            total=min(len(entries), limit),
            has_more=len(entries) > limit,
        )

    @app.get("/sync", response_model=SyncResponse)
    def sync_endpoint(svc: KioskService = Depends(get_service)):
        return SyncResponse(users=[SyncUser(**user) for user in svc.sync()])

    @app.delete("/identities/{user_id}", response_model=DeleteResponse)
    def delete_identity_endpoint(user_id: str, svc: KioskService = Depends(get_service)):
        if not svc.remove(user_id):
            raise HTTPException(status_code=404, detail="User not found")
        return DeleteResponse(success=True, user_id=user_id)

    return app
