from taskcurator.middleware.logging import LoggingMiddleware
from taskcurator.middleware.request_id import RequestIDMiddleware

__all__ = ["LoggingMiddleware", "RequestIDMiddleware"]
