from pydantic import BaseModel, Field


class GuideRules(BaseModel):
    slug_prefix: str = "/service-manual"


class WorkflowRules(BaseModel):
    allow_self_approval: bool = False


class PublishingApiRules(BaseModel):
    base_url: str
    timeout_seconds: float = 10.0
    bearer_token_env: str = "PUBLISHING_API_BEARER_TOKEN"
    publishing_app: str = "service-manual-publisher"
    rendering_app: str = "service-manual-frontend"


class LinkCheckingRules(BaseModel):
    enabled: bool = True
    timeout_seconds: float = 5.0
    allowed_protocols: list[str] = Field(default_factory=lambda: ["http", "https"])


class Rules(BaseModel):
    guides: GuideRules = Field(default_factory=GuideRules)
    workflow: WorkflowRules = Field(default_factory=WorkflowRules)
    publishing_api: PublishingApiRules
    link_checking: LinkCheckingRules = Field(default_factory=LinkCheckingRules)
