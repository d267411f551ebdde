from calchat.llm.gateway import GatewayError, LanguageModelGateway

__all__ = ["GatewayError", "LanguageModelGateway"]
