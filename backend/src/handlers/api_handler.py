"""Main FastAPI application handler for Lambda deployment."""

import logging
import os
import time
from datetime import UTC, datetime

import boto3
from botocore.exceptions import ClientError
from fastapi import Depends, FastAPI, HTTPException, Query, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from mangum import Mangum

from models.feedback import (
    FeedbackFilters,
    FeedbackQuery,
    FeedbackSubmission,
    SortConfig,
    StatusUpdate,
)
from services.auth_service import AuthenticatedUser, AuthenticationError, AuthService
from services.feedback_form import FeedbackSubmissionService, FeedbackValidationError
from services.feedback_management_service import (
    FeedbackManagementService,
    InvalidStatusTransitionError,
    export_filename,
)
from services.feedback_store import FeedbackStorageError, FeedbackStore
from services.profile_service import ProfileService
from utils.slot_store import SlotStore

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="TaskFlow Feedback API",
    description="API for submitting and managing TaskFlow user feedback",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log API requests with timing for CloudWatch monitoring."""
    start = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000

    path = request.url.path
    if duration_ms > 1000:
        logger.warning(
            "[SLOW] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )
    elif response.status_code >= 500:
        logger.error(
            "[ERROR] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )
    elif response.status_code >= 400:
        logger.info(
            "[CLIENT_ERROR] %s %s %.0fms status=%d",
            request.method,
            path,
            duration_ms,
            response.status_code,
        )

    return response


# Lazy-initialized AWS clients and services
# Required for Lambda SnapStart - connections must be re-established after restore
_dynamodb = None
_slot_store = None
_feedback_store = None
_profile_service = None
_auth_service = None

# Security scheme for bearer token authentication
security = HTTPBearer(auto_error=False)


def reset_services():
    """Reset all lazy-initialized services. Useful for testing.

    Also resets boto3's default session so that subsequent calls to
    boto3.resource() create fresh sessions within the current mock context
    (e.g., moto's mock_aws).
    """
    global _dynamodb, _slot_store, _feedback_store, _profile_service, _auth_service
    _dynamodb = None
    _slot_store = None
    _feedback_store = None
    _profile_service = None
    _auth_service = None
    boto3.DEFAULT_SESSION = None


def get_dynamodb():
    """Get or create DynamoDB resource (lazy init for SnapStart)."""
    global _dynamodb
    if _dynamodb is None:
        region = os.environ.get("AWS_DEFAULT_REGION", "us-west-2")
        _dynamodb = boto3.resource("dynamodb", region_name=region)
    return _dynamodb


def get_slot_store() -> SlotStore:
    """Get or create the app-state slot store."""
    global _slot_store
    if _slot_store is None:
        environment = os.environ.get("ENVIRONMENT", "dev")
        table = get_dynamodb().Table(
            os.environ.get("APP_STATE_TABLE", f"taskflow-app-state-{environment}")
        )
        _slot_store = SlotStore(table)
    return _slot_store


def get_feedback_store() -> FeedbackStore:
    """Get or create FeedbackStore."""
    global _feedback_store
    if _feedback_store is None:
        _feedback_store = FeedbackStore(get_slot_store())
    return _feedback_store


def get_profile_service() -> ProfileService:
    """Get or create ProfileService."""
    global _profile_service
    if _profile_service is None:
        _profile_service = ProfileService(get_slot_store())
    return _profile_service


def get_auth_service() -> AuthService:
    """Get or create AuthService."""
    global _auth_service
    if _auth_service is None:
        _auth_service = AuthService(jwt_secret=os.environ.get("JWT_SECRET_KEY"))
    return _auth_service


def get_submission_service() -> FeedbackSubmissionService:
    return FeedbackSubmissionService(get_feedback_store(), get_profile_service())


def get_management_service() -> FeedbackManagementService:
    return FeedbackManagementService(get_feedback_store())


# MARK: - Authentication Dependencies


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),  # noqa: B008
) -> AuthenticatedUser:
    """Extract the caller from the JWT bearer token.

    Raises:
        HTTPException: If token is missing or invalid
    """
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return get_auth_service().verify_access_token(credentials.credentials)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_admin(
    user: AuthenticatedUser = Depends(get_current_user),  # noqa: B008
) -> AuthenticatedUser:
    """Require an admin caller."""
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


def _build_query(
    category: str,
    status_filter: str,
    rating: str,
    search: str,
    sort_key: str,
    direction: str,
) -> FeedbackQuery:
    """Build the admin view state from query parameters.

    Invalid values raise pydantic's ValidationError (a ValueError), which
    the ValueError handler turns into a 400.
    """
    return FeedbackQuery(
        filters=FeedbackFilters(
            category=category,
            status=status_filter,
            rating=rating,
            search=search,
        ),
        sort=SortConfig(key=sort_key, direction=direction),
    )


async def get_feedback_query(
    category: str = Query("all", description="Category or 'all'"),
    status_filter: str = Query("all", alias="status", description="Status or 'all'"),
    rating: str = Query("all", description="Star rating 1-5 or 'all'"),
    search: str = Query("", max_length=200, description="Free-text search"),
    sort_key: str = Query("createdAt", description="Field to sort by"),
    direction: str = Query("desc", description="asc or desc"),
) -> FeedbackQuery:
    return _build_query(category, status_filter, rating, search, sort_key, direction)


# MARK: - Health Check


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "version": "1.0.0",
    }


# MARK: - Profile Endpoint


@app.get("/api/v1/profile")
async def get_profile(user: AuthenticatedUser = Depends(get_current_user)):  # noqa: B008
    """Get the profile used to prefill the feedback form."""
    profile = get_profile_service().get_profile(user.role.value)
    return profile.model_dump()


# MARK: - Feedback Endpoints


@app.post("/api/v1/feedback", status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    submission: FeedbackSubmission,
    user: AuthenticatedUser = Depends(get_current_user),  # noqa: B008
):
    """Submit user feedback."""
    try:
        record = get_submission_service().submit(submission, role=user.role.value)
    except FeedbackStorageError as e:
        logger.error("Feedback submission failed for %s: %s", user.user_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to submit feedback",
        )

    return {
        "feedback": record.to_storage(),
        "message": "Thank you for your feedback!",
    }


# MARK: - Admin Feedback Endpoints


@app.get("/api/v1/admin/feedback")
async def list_feedback(
    query: FeedbackQuery = Depends(get_feedback_query),  # noqa: B008
    admin: AuthenticatedUser = Depends(get_current_admin),  # noqa: B008
):
    """Filtered, sorted feedback with statistics over the whole collection."""
    return get_management_service().load_view(query).to_dict()


@app.get("/api/v1/admin/feedback/statistics")
async def feedback_statistics(
    admin: AuthenticatedUser = Depends(get_current_admin),  # noqa: B008
):
    """Counts per status and average rating."""
    return get_management_service().get_statistics().model_dump(by_alias=True)


@app.get("/api/v1/admin/feedback/export")
async def export_feedback(
    query: FeedbackQuery = Depends(get_feedback_query),  # noqa: B008
    admin: AuthenticatedUser = Depends(get_current_admin),  # noqa: B008
):
    """Download the filtered view as a JSON file."""
    content = get_management_service().export(query)
    filename = export_filename()
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.put("/api/v1/admin/feedback/{feedback_id}/status")
async def update_feedback_status(
    feedback_id: str,
    update: StatusUpdate,
    admin: AuthenticatedUser = Depends(get_current_admin),  # noqa: B008
):
    """Move a feedback record to a new review status."""
    try:
        record = get_management_service().transition(feedback_id, update.status)
    except FeedbackStorageError as e:
        logger.error("Status update failed for feedback %s: %s", feedback_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update feedback status",
        )

    if record is None:
        raise HTTPException(status_code=404, detail="Feedback not found")

    logger.info("Admin %s set feedback %s to %s", admin.user_id, feedback_id, record.status)
    return record.to_storage()


# MARK: - Exception Handlers


@app.exception_handler(FeedbackValidationError)
async def feedback_validation_error_handler(request, exc: FeedbackValidationError):
    """Report the first failing form rule."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": exc.message, "code": exc.code.value},
    )


@app.exception_handler(InvalidStatusTransitionError)
async def invalid_transition_handler(request, exc: InvalidStatusTransitionError):
    """Handle status changes that are not admin actions."""
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": str(exc),
            "current_status": exc.current,
            "requested_status": exc.requested,
        },
    )


@app.exception_handler(ClientError)
async def aws_client_error_handler(request, exc: ClientError):
    """Handle AWS client errors."""
    error_code = exc.response["Error"]["Code"]
    error_message = exc.response["Error"]["Message"]

    if error_code == "ResourceNotFoundException":
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": f"Resource not found: {error_message}"},
        )
    else:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": f"AWS error: {error_message}"},
        )


@app.exception_handler(ValueError)
async def value_error_handler(request, exc: ValueError):
    """Handle value errors."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)}
    )


# MARK: - Lambda Handler

# Create the Lambda handler
api_handler = Mangum(app, lifespan="off")


# For local development
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
