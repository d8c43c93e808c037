from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional


class ChatTurn(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    messages: List[ChatTurn] = Field(min_length=1)
    session_id: Optional[str] = None


class ActionMetadataModel(BaseModel):
    action: str
    orderId: Optional[str] = None
    patientId: Optional[str] = None
    patientName: Optional[str] = None
    autoTrigger: bool = False


class ChatReply(BaseModel):
    id: str
    session_id: str
    role: Literal["assistant"] = "assistant"
    content: str
    metadata: Optional[ActionMetadataModel] = None


class ConfigStatus(BaseModel):
    configured: bool
    message: str


class CreateOrderRequest(BaseModel):
    patient_id: str
    tests: List[str]
    phlebotomy_option: Literal["mobile", "in_office", "draw_center"] = "draw_center"
    phlebotomy_type: Literal["single", "hourly"] = "single"
    billed_to: Literal["clinician", "patient"] = "clinician"
    notes: str = ""
    session_id: Optional[str] = None


class CreateOrderResponse(BaseModel):
    success: bool = True
    session_id: str
    orderId: str
    status: str
    createdAt: str
    total: float
    order: Dict[str, Any]


class TrackingStepModel(BaseModel):
    id: str
    label: str
    date: Optional[str] = None
    completed: bool
    description: str


class TrackingResponse(BaseModel):
    orderId: str
    status: str
    patientName: Optional[str] = None
    current: int
    steps: List[TrackingStepModel]


class HealthResponse(BaseModel):
    status: str
    patients_loaded: int
    llm_configured: bool
