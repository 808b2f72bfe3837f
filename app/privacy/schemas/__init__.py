from app.privacy.schemas.request import (  # noqa: F401
    CreateRequestResponse,
    CreateRequestResult,
    PrivacyParams,
    PrivacyRequestResponse,
    RequestForm,
    RequestType,
)
