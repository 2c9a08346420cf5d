from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional, List, Dict, Any


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ContactFilters(CamelModel):
    tags: Optional[List[str]] = None
    source: Optional[str] = None
    contact_ids: Optional[List[str]] = Field(default=None, alias="contactIds")


class CallJobCreateRequest(CamelModel):
    agent_id: str = Field(alias="agentId")
    name: Optional[str] = None
    contact_filters: Optional[ContactFilters] = Field(default=None, alias="contactFilters")
    # calls per minute
    rate_limit: int = Field(default=10, alias="rateLimit", gt=0)


class CallJobControlRequest(CamelModel):
    job_id: str = Field(alias="jobId")
    action: str


class CallStartRequest(CamelModel):
    agent_id: str = Field(alias="agentId")
    contact_id: str = Field(alias="contactId")


class ContactCreate(BaseModel):
    first_name: Optional[str] = Field(default=None, max_length=200)
    last_name: Optional[str] = Field(default=None, max_length=200)
    phone_e164: str = Field(min_length=4, max_length=20)
    email: Optional[EmailStr] = None
    tags: Optional[List[str]] = None
    source: Optional[str] = None


class AgentImportRequest(CamelModel):
    provider: str = Field(pattern="^(retell|vapi)$")
    external_agent_id: str = Field(alias="externalAgentId")
    mode: str = Field(default="outbound", pattern="^(inbound|outbound)$")


class WebCallRequest(BaseModel):
    agent_id: str
    agent_version: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = None
    retell_llm_dynamic_variables: Optional[Dict[str, Any]] = None


class PhoneCallRequest(CamelModel):
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    agent_id: Optional[str] = Field(default=None, alias="agentId")
    metadata: Optional[Dict[str, Any]] = None
