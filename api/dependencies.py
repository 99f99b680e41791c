"""
API依赖项 - 支付服务注入
"""
from fastapi import Request

from application.services.payment_service import PaymentGatewayService


async def get_payment_service(request: Request) -> PaymentGatewayService:
    """返回应用生命周期内构建的支付服务（见 main.lifespan）"""
    return request.app.state.payment_service
