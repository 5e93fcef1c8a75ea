from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, Field

PageName = Literal["auth", "dashboard"]
ModuleName = Literal["none", "id", "card", "otp"]


class Banner(BaseModel):
    text: str = ""
    verified: bool = False


class ModuleView(BaseModel):
    visible: bool = False
    enabled: bool = True
    instructions: Optional[str] = None
    clearedFields: List[str] = Field(default_factory=list)


class CallToAction(BaseModel):
    module: ModuleName = "none"
    resetForm: bool = False


class InlineMessage(BaseModel):
    text: str
    error: bool = False


class ViewSnapshot(BaseModel):
    page: PageName
    displayName: str = ""
    banner: Banner
    module: ModuleName = "none"
    callToAction: CallToAction = Field(default_factory=CallToAction)
    modules: Dict[str, ModuleView] = Field(default_factory=dict)
    messages: Dict[str, InlineMessage] = Field(default_factory=dict)
    busy: bool = False


class ActionResponse(BaseModel):
    ok: bool
    view: ViewSnapshot
