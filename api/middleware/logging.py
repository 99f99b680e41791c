"""
请求/响应日志中间件
记录支付接口的请求与响应（方法、路径、状态码、耗时）
"""
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from core.logging_config import get_logger


logger = get_logger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    日志记录中间件

    1. 记录请求信息（方法、路径、查询参数）
    2. 记录响应信息（状态码、耗时）
    3. 不记录请求体与签名头：Webhook 原始报文只交给支付服务处理
    """

    # 跳过日志的路径
    SKIP_PATHS = {"/health", "/docs", "/redoc", "/openapi.json"}

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        request_info = {
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
        }
        logger.info("request_started", **request_info)

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                duration=time.perf_counter() - start_time,
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
                **request_info,
            )
            # 交给全局异常处理器
            raise

        duration = time.perf_counter() - start_time
        self._log_response(response, duration, request_info)
        response.headers["X-Process-Time"] = f"{duration:.3f}"
        return response

    def _log_response(self, response: Response, duration: float, request_info: dict) -> None:
        # 根据状态码选择日志级别
        status_code = response.status_code
        log_data = {"status_code": status_code, "duration": duration, **request_info}
        if status_code < 400:
            logger.info("request_completed", **log_data)
        elif status_code < 500:
            logger.warning("request_client_error", **log_data)
        else:
            logger.error("request_server_error", **log_data)
