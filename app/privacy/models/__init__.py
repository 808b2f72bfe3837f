from app.privacy.models.privacy_request import (  # noqa: F401
    OPEN_STATUSES,
    PrivacyRequestModel,
    RequestStatus,
)
