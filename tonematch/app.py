# ============================================================
# tonematch FastAPI App
# ------------------------------------------------------------
# Thin HTTP surface over ReplyService:
#   - single / dual (agree + decline) reply drafting
#   - context preview (retrieval + assembly, no generation)
#   - custom style guidelines
#   - style similarity of a drafted reply
# ============================================================

from functools import lru_cache
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from tonematch.errors import NotFoundError, UpstreamError
from tonematch.service import ReplyService
from tonematch.settings import configure_logging, settings

configure_logging()

# ------------------------------------------------------------
# 🔧 Service wiring
# ------------------------------------------------------------
@lru_cache(maxsize=1)
def get_service() -> ReplyService:
    return ReplyService.from_settings(settings)

# ------------------------------------------------------------
# 🚀 FastAPI init
# ------------------------------------------------------------
app = FastAPI(title="tonematch API", version="0.1")

# ------------------------------------------------------------
# 📦 Pydantic models
# ------------------------------------------------------------
class ReplyRequest(BaseModel):
    user_id: str
    partner_id: str
    message: str = Field(..., min_length=1)
    timeout: Optional[float] = Field(default=None, gt=0)

class ReplyPayload(BaseModel):
    reply: str

class DualReplyPayload(BaseModel):
    positive_reply: str
    negative_reply: str

class TurnPayload(BaseModel):
    role: str
    text: str

class ContextPayload(BaseModel):
    user_name: str
    partner_name: str
    incoming_message: str
    samples: List[str]
    recent_turns: List[TurnPayload]
    relationship: Dict[str, str]
    custom_guidelines: Optional[str] = None
    style_profile: List[str] = []

class StyleProfileRequest(BaseModel):
    custom_guidelines: Optional[str] = None

class SimilarityRequest(BaseModel):
    user_id: str
    text: str = Field(..., min_length=1)

class SimilarityPayload(BaseModel):
    average: float
    max: float
    min: float
    distribution: Dict[str, int]

# ------------------------------------------------------------
# ⚠️ Error mapping
# ------------------------------------------------------------
def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, UpstreamError):
        return HTTPException(status_code=502, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))

# ------------------------------------------------------------
# 💬 Reply routes
# ------------------------------------------------------------
@app.post("/reply", response_model=ReplyPayload)
def reply(req: ReplyRequest, service: ReplyService = Depends(get_service)):
    try:
        text = service.generate_single_reply(req.user_id, req.partner_id, req.message, timeout=req.timeout)
    except (NotFoundError, UpstreamError, ValueError) as e:
        raise _http_error(e)
    return ReplyPayload(reply=text)

@app.post("/replies", response_model=DualReplyPayload)
def replies(req: ReplyRequest, service: ReplyService = Depends(get_service)):
    try:
        out = service.generate_dual_reply(req.user_id, req.partner_id, req.message, timeout=req.timeout)
    except (NotFoundError, UpstreamError, ValueError) as e:
        raise _http_error(e)
    return DualReplyPayload(positive_reply=out.positive_reply, negative_reply=out.negative_reply)

# ------------------------------------------------------------
# 🔎 Context-only route
# ------------------------------------------------------------
@app.get("/context", response_model=ContextPayload)
def context(
    user_id: str,
    partner_id: str,
    q: str = Query(..., min_length=1, description="Incoming message"),
    service: ReplyService = Depends(get_service),
):
    try:
        req = service.preview_context(user_id, partner_id, q)
    except (NotFoundError, UpstreamError, ValueError) as e:
        raise _http_error(e)
    rel = req.relationship
    return ContextPayload(
        user_name=req.user_name,
        partner_name=req.partner_name,
        incoming_message=req.incoming_message,
        samples=req.samples,
        recent_turns=[TurnPayload(role=t.role, text=t.text) for t in req.recent_turns],
        relationship={"category": rel.category, "politeness": rel.politeness, "vibe": rel.vibe},
        custom_guidelines=req.custom_guidelines,
        style_profile=req.style_profile.characteristics if req.style_profile else [],
    )

# ------------------------------------------------------------
# 🎨 Style profile routes
# ------------------------------------------------------------
@app.get("/style-profile/{user_id}")
def get_style_profile(user_id: str, service: ReplyService = Depends(get_service)):
    try:
        return service.get_style_profile(user_id)
    except NotFoundError as e:
        raise _http_error(e)

@app.put("/style-profile/{user_id}")
def put_style_profile(user_id: str, req: StyleProfileRequest, service: ReplyService = Depends(get_service)):
    try:
        return service.update_style_profile(user_id, req.custom_guidelines)
    except NotFoundError as e:
        raise _http_error(e)

@app.delete("/style-profile/{user_id}")
def delete_style_profile(user_id: str, service: ReplyService = Depends(get_service)):
    try:
        service.delete_style_profile(user_id)
    except NotFoundError as e:
        raise _http_error(e)
    return {"message": "Style profile deleted successfully"}

# ------------------------------------------------------------
# 📊 Style similarity
# ------------------------------------------------------------
@app.post("/similarity", response_model=SimilarityPayload)
def similarity(req: SimilarityRequest, service: ReplyService = Depends(get_service)):
    try:
        m = service.measure_style_similarity(req.user_id, req.text)
    except (NotFoundError, UpstreamError, ValueError) as e:
        raise _http_error(e)
    return SimilarityPayload(average=m.average, max=m.max, min=m.min, distribution=m.distribution)

# ------------------------------------------------------------
# 🧭 Health checks
# ------------------------------------------------------------
@app.get("/healthz")
def healthz():
    return {
        "ok": True,
        "env": settings.ENV,
        "debug": settings.DEBUG,
        "app": settings.app_name,
    }

@app.get("/health")
def health():
    return {"status": "ok", "env": settings.ENV}

@app.get("/")
def hello():
    return {"message": "tonematch service running."}
