from .supplier_gateway import SupplierGateway, GatewayResult, GATEWAY_ACTIONS

__all__ = ["SupplierGateway", "GatewayResult", "GATEWAY_ACTIONS"]
