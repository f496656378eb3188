from datetime import date
from typing import Optional, Literal, List

from fastapi import FastAPI, Depends, File, Form, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from blobs import BlobStore
from complaints import ComplaintStore
from config import Settings, get_settings
from database import SnapshotStore, create_store, database_status
from errors import (
    ComplaintDeskError, AuthenticationError, NotAuthenticatedError, NotAuthorizedError,
    DuplicateEmailError, InvalidTransitionError, ValidationError, FileRejectedError,
    ComplaintNotFoundError,
)
from exports import complaints_to_csv, export_filename
from forms import ComplaintForm, UploadedFile
from identity import IdentityStore, validate_login, validate_registration
from logging_config import setup_logging, get_logger
from queries import ALL, admin_view, distinct_types, query_complaints
from schemas import LoginRequest, RegisterRequest, StatusUpdateRequest, SortKey, SubmissionResult

logger = get_logger(__name__)

StatusFilter = Literal['all', 'pending', 'in-progress', 'resolved']

STATUS_CODES = {
    AuthenticationError: 401,
    NotAuthenticatedError: 401,
    NotAuthorizedError: 403,
    DuplicateEmailError: 409,
    InvalidTransitionError: 409,
    ValidationError: 422,
    FileRejectedError: 422,
    ComplaintNotFoundError: 404,
}


def create_app(settings: Optional[Settings] = None, store: Optional[SnapshotStore] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)
    store = store if store is not None else create_store(settings)

    app = FastAPI(title=settings.APP_NAME)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    identity = IdentityStore(store, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
    app.state.settings = settings
    app.state.store = store
    app.state.identity = identity
    app.state.complaints = ComplaintStore(store, identity)
    app.state.blobs = BlobStore()

    @app.exception_handler(ComplaintDeskError)
    async def complaint_desk_error_handler(request: Request, exc: ComplaintDeskError):
        status_code = STATUS_CODES.get(type(exc), 400)
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "code": exc.code, "details": exc.details},
        )

    register_routes(app)
    return app


# Dependencies

def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_identity(request: Request) -> IdentityStore:
    return request.app.state.identity


def get_complaints(request: Request) -> ComplaintStore:
    return request.app.state.complaints


def get_blobs(request: Request) -> BlobStore:
    return request.app.state.blobs


def require_user(identity: IdentityStore = Depends(get_identity)) -> IdentityStore:
    if not identity.is_authenticated:
        raise NotAuthenticatedError()
    return identity


def require_admin(identity: IdentityStore = Depends(require_user)) -> IdentityStore:
    if not identity.is_admin:
        raise NotAuthorizedError()
    return identity


def register_routes(app: FastAPI) -> None:

    @app.get("/")
    def read_root():
        return {"message": f"{app.state.settings.APP_NAME} running"}

    @app.get("/test")
    def test_database(request: Request):
        return database_status(request.app.state.store, request.app.state.settings)

    # Authentication

    @app.post("/auth/register")
    def register(payload: RegisterRequest, identity: IdentityStore = Depends(get_identity)):
        validate_registration(payload)
        user = identity.register(payload.name, payload.email, payload.phone, payload.password)
        return {"user": user}

    @app.post("/auth/login")
    def login(payload: LoginRequest, identity: IdentityStore = Depends(get_identity)):
        validate_login(payload)
        user = identity.login(payload.email, payload.password)
        return {"user": user, "redirect": "/admin" if user.role == 'admin' else "/dashboard"}

    @app.post("/auth/logout")
    def logout(identity: IdentityStore = Depends(get_identity)):
        identity.logout()
        return {"ok": True}

    @app.get("/auth/me")
    def auth_me(identity: IdentityStore = Depends(get_identity)):
        if not identity.is_authenticated:
            return {"authenticated": False}
        return {"authenticated": True, "isAdmin": identity.is_admin, "user": identity.current_user}

    # Complaints

    @app.post("/complaints", response_model=SubmissionResult)
    def create_complaint(
        type: Optional[str] = Form(None),
        location: str = Form(""),
        description: str = Form(""),
        files: List[UploadFile] = File(default=[]),
        identity: IdentityStore = Depends(require_user),
        complaints: ComplaintStore = Depends(get_complaints),
        blobs: BlobStore = Depends(get_blobs),
        settings: Settings = Depends(get_app_settings),
    ):
        form = ComplaintForm(
            complaints,
            blobs,
            reset_delay=None,
            allowed_types=settings.ALLOWED_UPLOAD_TYPES,
            max_file_size=settings.MAX_UPLOAD_BYTES,
        )
        form.type = type
        form.location = location
        form.description = description
        uploads = [UploadedFile(f.filename or "upload", f.content_type or "", f.file.read()) for f in files]
        rejected = form.add_files(uploads)
        file_error = form.file_error
        try:
            complaint = form.submit()
        except ComplaintDeskError:
            form.discard()
            raise
        return SubmissionResult(
            complaint=complaint,
            file_error=file_error,
            rejected_files=[e.filename for e in rejected],
        )

    @app.get("/complaints/mine")
    def my_complaints(
        search: str = "",
        status: StatusFilter = ALL,
        type: str = ALL,
        sort: SortKey = 'newest',
        identity: IdentityStore = Depends(require_user),
        complaints: ComplaintStore = Depends(get_complaints),
    ):
        own = complaints.user_complaints
        return {
            "items": query_complaints(own, search, status, type, sort),
            "types": distinct_types(own),
        }

    @app.get("/complaints")
    def list_complaints(
        search: str = "",
        status: StatusFilter = ALL,
        type: str = ALL,
        sort: SortKey = 'newest',
        page: int = 1,
        identity: IdentityStore = Depends(require_admin),
        complaints: ComplaintStore = Depends(get_complaints),
        settings: Settings = Depends(get_app_settings),
    ):
        return admin_view(complaints.complaints, search, status, type, sort, page, settings.PAGE_SIZE)

    @app.get("/complaints/export.csv")
    def export_complaints(
        search: str = "",
        status: StatusFilter = ALL,
        type: str = ALL,
        sort: SortKey = 'newest',
        identity: IdentityStore = Depends(require_admin),
        complaints: ComplaintStore = Depends(get_complaints),
    ):
        rows = query_complaints(complaints.complaints, search, status, type, sort, include_user_name=True)
        return Response(
            content=complaints_to_csv(rows),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{export_filename(date.today())}"'},
        )

    @app.get("/complaints/{complaint_id}")
    def get_complaint(
        complaint_id: str,
        identity: IdentityStore = Depends(require_user),
        complaints: ComplaintStore = Depends(get_complaints),
    ):
        complaint = complaints.get_complaint_by_id(complaint_id)
        if complaint is None or (not identity.is_admin and complaint.user_id != identity.current_user.id):
            raise ComplaintNotFoundError(complaint_id)
        return complaint

    @app.patch("/complaints/{complaint_id}/status")
    def update_complaint_status(
        complaint_id: str,
        payload: StatusUpdateRequest,
        identity: IdentityStore = Depends(require_admin),
        complaints: ComplaintStore = Depends(get_complaints),
    ):
        return complaints.update_complaint_status(complaint_id, payload.status)

    @app.get("/uploads/{blob_id}")
    def get_upload(blob_id: str, blobs: BlobStore = Depends(get_blobs)):
        blob = blobs.get(blob_id)
        if blob is None:
            raise HTTPException(status_code=404, detail="Not found")
        return Response(content=blob.content, media_type=blob.media_type)


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().PORT)
