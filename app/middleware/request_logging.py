from fastapi import Request
import logging
import time
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("app")

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        method = request.method
        path = request.url.path
        query_string = request.url.query
        client = request.client.host if request.client else "unknown"

        logger.info(f"Request: {method} {path} {query_string} from {client}")

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(f"Unhandled error on {method} {path} after {process_time:.4f}s: {e}")
            raise

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.4f}"

        if response.status_code >= 500:
            logger.error(f"Response: {response.status_code} for {method} {path} in {process_time:.4f}s")
        else:
            logger.info(f"Response: {response.status_code} for {method} {path} in {process_time:.4f}s")

        return response
