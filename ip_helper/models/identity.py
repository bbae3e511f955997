from pydantic import BaseModel, Field

from ip_helper.errors import MissingIdentityContextError


class Identity(BaseModel):
    """Caller identity resolved from the transport address and proxy hints."""

    observed_address: str = Field(description="Source address seen by the transport.")
    real_ip: str = Field(description="Address treated as the originating client.")
    proxy_ip: str = Field(default="", description="Nearest inferred intermediary, empty if none.")
    is_proxy: bool = Field(default=False, description="True if any proxy signal was detected.")
    forwarded_chain_raw: str = Field(default="", description="Original X-Forwarded-For value.")


class RequestContext(BaseModel):
    """Per-request context handed to HTTP handlers.

    `identity` is None when the transport address could not be turned into a
    valid identity (e.g. a unix socket peer or an unparseable forwarded chain).
    """

    identity: Identity | None = None

    def require_identity(self) -> Identity:
        if self.identity is None:
            raise MissingIdentityContextError("IP info not found")
        return self.identity
