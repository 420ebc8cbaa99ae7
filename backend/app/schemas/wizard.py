from typing import Any

from pydantic import BaseModel, Field, field_validator


class WizardRequest(BaseModel):
    user_id: str
    language_code: str = "tr"
    user_input_text: str = ""
    step_index: int = 0
    form_state: dict[str, Any] = Field(default_factory=dict)


class WizardLLMReply(BaseModel):
    """The JSON object the model must answer with for every wizard step."""
    updates: dict[str, Any] = Field(default_factory=dict)
    step_done: bool = False
    assistant_comment: str = ""

    @field_validator("updates", mode="before")
    @classmethod
    def _updates_object(cls, v: Any) -> dict[str, Any]:
        return v if isinstance(v, dict) else {}

    @field_validator("step_done", mode="before")
    @classmethod
    def _strict_true(cls, v: Any) -> bool:
        # "true", 1 and friends do not count; only a JSON true finishes a step.
        return v is True

    @field_validator("assistant_comment", mode="before")
    @classmethod
    def _comment_text(cls, v: Any) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)


class WizardResponse(BaseModel):
    assistant_reply: str
    is_finished: bool
    step_index: int
    form_state: dict[str, Any] = Field(default_factory=dict)
