# app.py
import os, time, uuid, logging
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Depends, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

# L'orchestrateur contient tout le reste (validation, exécution, rendu)
from dumprows_orchestrator import run_query

load_dotenv()

APP_NAME = "DumpRows"
app = FastAPI(title=APP_NAME)

# --- Middleware, CORS, Sécurité ---
log = logging.getLogger("dumprows.api")
if not log.handlers:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")

@app.middleware("http")
async def log_requests(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    start = time.perf_counter()
    response = await call_next(request)
    dur = (time.perf_counter() - start) * 1000
    log.info(f"✅ {request.method} {request.url.path} id={req_id} -> {response.status_code} in {dur:.1f} ms")
    response.headers["X-Request-ID"] = req_id
    return response

if os.getenv("ENABLE_CORS", "0") == "1":
    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",")]
    app.add_middleware(CORSMiddleware, allow_origins=origins, allow_credentials=True, allow_methods=["GET"], allow_headers=["*"])

def api_key_guard(x_api_key: Optional[str] = Header(None)):
    expected = os.getenv("DUMPROWS_API_TOKEN", "")
    if expected and x_api_key != expected:
        raise HTTPException(401, "Invalid or missing API key")
    return True

# --- Endpoints ---
@app.get("/health")
def health():
    return {"status": "ok", "app": APP_NAME}

@app.get("/", response_class=HTMLResponse)
def dump_rows(request: Request, _auth = Depends(api_key_guard)):
    """
    La chaîne de requête brute (encodée %XX) EST la requête SQL, comme QUERY_STRING en CGI :
        GET /?SELECT%20name,%20ST_AsGeoJSON(geom)%20FROM%20places
    """
    remote_addr = request.client.host if request.client else None
    try:
        res = run_query(request.url.query, remote_addr)
    except Exception as e:
        log.error(f"Erreur dans l'endpoint /: {e}")
        raise HTTPException(500, f"Erreur lors du traitement : {e}")
    return HTMLResponse(res.html, status_code=res.status_code)
