from fastapi import FastAPI, APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from dotenv import load_dotenv
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
import os
import logging
import re
from pathlib import Path
from pydantic import BaseModel, Field
from typing import List, Optional
from urllib.parse import quote

from icon_store import IconCache, IconResolver, Theme
from icon_sheet import compose

ROOT_DIR = Path(__file__).parent
load_dotenv(ROOT_DIR / '.env')

ICONS_DIR = Path(os.getenv('ICONS_DIR', str(ROOT_DIR.parent / 'icons')))
ICONS_PER_LINE = int(os.getenv('ICONS_PER_LINE', '15'))
MIN_PER_LINE = 1
MAX_PER_LINE = 50

SVG_CACHE_CONTROL = "public, max-age=3600"

LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)", re.ASCII)

# One cache for the whole process; icons on disk never change while we run
resolver = IconResolver(ICONS_DIR, IconCache())

# Create the main app without a prefix
app = FastAPI(redirect_slashes=False)

# Create a router with the /api prefix
api_router = APIRouter(prefix="/api")


def get_resolver() -> IconResolver:
    return resolver


# Define Models
class IconList(BaseModel):
    icons: List[str]


class SheetRequest(BaseModel):
    icons: List[str]
    theme: Theme = Theme.LIGHT
    per_line: int = Field(default=ICONS_PER_LINE, ge=MIN_PER_LINE, le=MAX_PER_LINE)


# Helper functions
def split_icon_names(raw: str) -> List[str]:
    """Comma-separated names, trimmed, empties dropped, order and duplicates kept"""
    return [name.strip() for name in raw.split(',') if name.strip()]


def parse_per_line(value: Optional[str]) -> int:
    if not value:
        return ICONS_PER_LINE
    match = LEADING_INT_RE.match(value)
    per_line = int(match.group(1)) if match else None
    if per_line is None or not MIN_PER_LINE <= per_line <= MAX_PER_LINE:
        raise HTTPException(
            status_code=400,
            detail=f"perline must be between {MIN_PER_LINE} and {MAX_PER_LINE}",
        )
    return per_line


def build_sheet_request(request: Request) -> SheetRequest:
    """Validate /api/svg query params in the order clients see errors"""
    params = request.query_params

    icon_param = params.get('i') or params.get('icons')
    if not icon_param:
        raise HTTPException(status_code=400, detail='Parameter "i" or "icons" required')

    icons = split_icon_names(icon_param)
    if not icons:
        raise HTTPException(status_code=400, detail="No icons specified")

    try:
        theme = Theme.parse(params.get('t') or params.get('theme') or Theme.LIGHT.value)
    except ValueError:
        raise HTTPException(status_code=400, detail='Theme must be "Light" or "Dark"')

    per_line = parse_per_line(params.get('perline'))
    return SheetRequest(icons=icons, theme=theme, per_line=per_line)


@api_router.get("/icons", response_model=IconList)
def list_icons(store: IconResolver = Depends(get_resolver)):
    """All icon names available in the icons directory"""
    return IconList(icons=store.list_available())


@api_router.get("/svg")
def render_svg(request: Request, store: IconResolver = Depends(get_resolver)):
    """Compose the requested icons into one SVG sheet"""
    sheet = build_sheet_request(request)

    icon_data: List[str] = []
    not_found: List[str] = []
    for icon_name in sheet.icons:
        icon_svg = store.resolve(icon_name, sheet.theme)
        if icon_svg:
            icon_data.append(icon_svg)
        else:
            not_found.append(icon_name)

    if not icon_data:
        logging.info("[svg] no icons resolved for %s", ",".join(not_found))
        raise HTTPException(
            status_code=404,
            detail={
                "error": "No icons found",
                "notFound": not_found,
                "available": store.list_available(),
            },
        )

    headers = {"Cache-Control": SVG_CACHE_CONTROL}
    if not_found:
        logging.info("[svg] not found: %s", ",".join(not_found))
        headers["X-Not-Found"] = ",".join(quote(name, safe="") for name in not_found)

    return Response(
        content=compose(icon_data, sheet.per_line),
        media_type="image/svg+xml",
        headers=headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Every HTTP error goes out as JSON with an "error" key"""
    if isinstance(exc.detail, dict):
        body = exc.detail
    elif exc.status_code == 404 and exc.detail == "Not Found":
        body = {"error": "Route not found"}
    elif exc.status_code == 405:
        body = {"error": "Method not allowed"}
    else:
        body = {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.middleware("http")
async def only_get(request: Request, call_next):
    if request.method != "GET":
        return JSONResponse(status_code=405, content={"error": "Method not allowed"})
    return await call_next(request)


# Include the router in the main app
app.include_router(api_router)

app.add_middleware(
    CORSMiddleware,
    allow_credentials=True,
    allow_origins=os.environ.get('CORS_ORIGINS', '*').split(','),
    allow_methods=["GET"],
    allow_headers=["*"],
    expose_headers=["X-Not-Found"],
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def log_icon_store():
    if ICONS_DIR.is_dir():
        logger.info("[icons] serving %d icons from %s", len(resolver.list_available()), ICONS_DIR)
    else:
        logger.warning("[icons] ICONS_DIR %s does not exist; every request will 404", ICONS_DIR)
