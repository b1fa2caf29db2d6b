from pydantic import BaseModel, Field


class ClientIPConfig(BaseModel):
    """Client IP detection settings."""

    trusted_proxies: list[str] = Field(
        default_factory=list,
        description=(
            "Addresses or CIDR networks of trusted proxies. When non-empty, "
            "X-Forwarded-For is honoured for requests coming through them."
        ),
    )
    trusted_header: str | None = Field(
        default=None,
        description=(
            "Header carrying the client IP, set by an edge proxy that "
            "overwrites it (e.g. X-Real-IP, CF-Connecting-IP)"
        ),
    )
    reject_undetected: bool = Field(
        default=False,
        description="Reject requests whose client IP cannot be determined",
    )
    reject_status_code: int = Field(
        default=400, description="Status code of the rejection response"
    )
    reject_detail: str = Field(
        default="undefined ip", description="Detail of the rejection response"
    )
    state_key: str = Field(
        default="client_ip",
        description="Attribute of request.state holding the detected address",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Root log level")
    json_output: bool = Field(
        default=True, description="Emit JSON lines instead of coloured text"
    )


class MetricsConfig(BaseModel):
    """Prometheus metrics configuration."""

    enabled: bool = Field(default=True, description="Expose /metrics")
    excluded_urls: list[str] = Field(
        default_factory=lambda: ["/health", "/metrics"],
        description="Handlers excluded from HTTP instrumentation",
    )
