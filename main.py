"""
FastAPI应用主入口
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from api.middleware import LoggingMiddleware, RequestIDMiddleware
from api.routes import payments as payments_routes
from application.services.payment_service import PaymentGatewayService
from core.config import settings
from core.exceptions import register_exception_handlers
from core.logging_config import configure_logging, get_logger
from core.settings import PaymentSettings, payment_settings
from core.response import success_response
from infrastructure.external.payments import build_payment_service


logger = get_logger(__name__)


def create_app(
    payment_service: Optional[PaymentGatewayService] = None,
    config: Optional[PaymentSettings] = None,
) -> FastAPI:
    """构建应用；测试可注入预先组装好的 PaymentGatewayService 与支付配置"""
    config = config or payment_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        service = payment_service or build_payment_service(config)
        app.state.payment_service = service
        app.state.signature_headers = list(config.webhook.signature_headers)
        logger.info(
            "payment_service_initialized",
            methods=[m.value for m in service.supported_methods()],
        )
        yield
        await service.aclose()
        logger.info("application_shutdown", message="Application shutdown")

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        description="Payment method abstraction layer: payment links, status, cancellation and webhooks",
    )

    # 中间件后添加者先执行：Request ID 最外层，日志中间件可带上 request_id
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # 注册全局异常处理器
    register_exception_handlers(app)

    # 注册路由
    app.include_router(payments_routes.router, prefix=settings.API_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health_check():
        """健康检查端点"""
        return success_response(data={"status": "healthy"}, message="OK")

    return app


# 初始化日志：在入口处显式配置，避免模块导入时的副作用
configure_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
