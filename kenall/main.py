import io
import zipfile

from fastapi import FastAPI, UploadFile, File, HTTPException
from .logger import get_logger, setup_logging
from .models import ConvertResponse, HealthResponse, MalformedRowError
from .convert import convert_csv_bytes

setup_logging()
logger = get_logger(__name__)

app = FastAPI(
    title="kenall-normalizer",
    description="Town-area normalization of the Japan Post KEN_ALL postcode table",
    version="0.1.0",
)

@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}

@app.post("/convert", response_model=ConvertResponse)
async def convert_ken_all(file: UploadFile = File(...)):
    filename = (file.filename or "").lower()
    if not filename.endswith((".csv", ".zip")):
        raise HTTPException(status_code=422, detail="Only CSV or ZIP files are supported")

    raw = await file.read()
    if filename.endswith(".zip"):
        raw = _first_member(raw)

    try:
        return convert_csv_bytes(raw)
    except (UnicodeDecodeError, MalformedRowError) as e:
        logger.warning("convert_rejected", filename=file.filename, error=str(e))
        raise HTTPException(status_code=422, detail=str(e)) from e


def _first_member(raw: bytes) -> bytes:
    try:
        with zipfile.ZipFile(io.BytesIO(raw)) as archive:
            names = archive.namelist()
            if not names:
                raise HTTPException(status_code=422, detail="ZIP archive is empty")
            return archive.read(names[0])
    except zipfile.BadZipFile as e:
        raise HTTPException(status_code=422, detail="Not a ZIP archive") from e
