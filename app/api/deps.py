from fastapi import HTTPException, Request, status

from app.forms.registry import FormRegistry
from app.services.submission_service import SubmissionHandler


def get_submission_handler(request: Request) -> SubmissionHandler:
    """
    Submission handler dependency, built once in the application lifespan.

    Usage:
        @router.post("/contact")
        async def submit(handler: SubmissionHandler = Depends(get_submission_handler)):
            ...
    """
    handler = getattr(request.app.state, "submission_handler", None)
    if handler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service temporarily unavailable. Please try again later.",
        )
    return handler


def get_form_registry(request: Request) -> FormRegistry:
    return request.app.state.form_registry
