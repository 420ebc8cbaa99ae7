from pydantic import BaseModel


class BioRequest(BaseModel):
    rawBio: str = ""


class BioResponse(BaseModel):
    improvedBio: str


class BioRewriteMeta(BaseModel):
    provider: str | None = None
    model: str | None = None
    input_sentences: int = 0
    target_min: int = 0
    target_max: int = 0
    rush: bool = False
