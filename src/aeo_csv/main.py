from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import Response

from aeo_csv.canonical.document import RawCsvDocument
from aeo_csv.router import route_export, route_parse, route_template
from aeo_csv.utils.exceptions import CodecError, UnknownColumnSpecError, ValidationError

app = FastAPI(
    title="EvidentlyAEO Topic/Prompt CSV Service",
    version="1.0.0"
)


def _error_detail(e: Exception) -> dict:
    return {
        "status": "ERROR",
        "error": type(e).__name__,
        "message": getattr(e, "message", None) or str(e),
    }


def _download(document: RawCsvDocument) -> Response:
    return Response(
        content=document.encode(),
        media_type=document.media_type,
        headers={"Content-Disposition": document.content_disposition()},
    )


@app.post("/csv/parse")
def parse_csv(payload: dict, request: Request):
    try:
        return route_parse(payload, request)
    except ValidationError as e:
        # The file was read but rejected; nothing is applied
        raise HTTPException(status_code=422, detail=_error_detail(e))
    except (CodecError, ValueError) as e:
        raise HTTPException(status_code=400, detail=_error_detail(e))


@app.post("/csv/export")
def export_csv(payload: dict, request: Request):
    try:
        return _download(route_export(payload, request))
    except (CodecError, ValueError) as e:
        raise HTTPException(status_code=400, detail=_error_detail(e))


@app.get("/csv/template/{spec}")
def download_template(spec: str, request: Request):
    try:
        return _download(route_template({"spec": spec}, request))
    except UnknownColumnSpecError as e:
        raise HTTPException(status_code=404, detail=_error_detail(e))
    except (CodecError, ValueError) as e:
        raise HTTPException(status_code=400, detail=_error_detail(e))
