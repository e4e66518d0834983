"""
Forge Endpoints
Boilerplate bundle, parse and focused-file projection for debugging the
parser against real model output
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from solforge.core.logging_config import logger
from solforge.modules.forge import StreamingProjector, build_file_tree, forge_parser, load_boilerplate
from solforge.schemas.forge import (
    FocusRequest,
    FocusResponse,
    ParseRequest,
    ParseResultSchema,
)

router = APIRouter(prefix="/forge", tags=["Forge Parser"])


@router.get("/boilerplate", response_class=PlainTextResponse)
async def get_boilerplate():
    """Boilerplate bundle in the directive format"""
    return PlainTextResponse(load_boilerplate())


@router.post("/parse", response_model=ParseResultSchema)
async def parse_response(request: ParseRequest):
    """
    Parse a response, optionally merged over earlier turns and the
    boilerplate (boilerplate < earlier turns < this response).
    """
    boilerplate = load_boilerplate() if request.use_boilerplate else None

    if boilerplate or request.existing_responses:
        result = forge_parser.parse_response_with_existing_files(
            request.response, request.existing_responses, boilerplate
        )
    else:
        result = forge_parser.parse_response(request.response)

    logger.info(
        f"[Forge API] Parsed {len(request.response)} chars -> "
        f"{len(result.files)} files, {len(result.directories)} dirs"
    )

    data = result.to_dict()
    data["tree"] = [node.to_dict() for node in build_file_tree(result.files, result.directories)]
    return data


@router.post("/focus", response_model=FocusResponse)
async def focus_file(request: FocusRequest):
    """Live content of one file, including a directive still being streamed"""
    projector = StreamingProjector(
        boilerplate=load_boilerplate() if request.use_boilerplate else None,
        existing=request.existing_responses or None,
        parser=forge_parser,
    )
    if request.path:
        projector.focus(request.path)

    view = projector.update(request.response)
    if not request.is_streaming:
        view = projector.finish()

    return FocusResponse(
        focused=view.focused.to_dict() if view.focused else None,
        active_path=view.active_path,
        is_streaming=view.is_streaming,
        buffer_length=view.buffer_length,
        file_count=len(view.response.files),
    )
