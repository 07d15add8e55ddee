# Core module
from smartstyle.core.validation import (
    ValidationError,
    validate_recommend_request,
    validate_image_upload,
    sanitize_error_message,
)
from smartstyle.core.auth import (
    User,
    get_current_user,
    check_user_ownership,
)
from smartstyle.core.rate_limit import (
    check_rate_limit,
    rate_limiter,
)
from smartstyle.core.timeouts import OperationTimeoutError, with_timeout
