"""
Social login API: Facebook OIDC implicit flow + opaque bearer sessions.
GET/POST /facebook/login, GET /user-info (protected), /health, /audit.
"""
import logging
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, RedirectResponse

from social_login.audit import (
    EVENT_LOGIN_FAIL,
    EVENT_LOGIN_OK,
    EVENT_LOGIN_STARTED,
    OUTCOME_FAIL,
    get_client_ip,
    log_audit,
)
from social_login.audit import router as audit_router
from social_login.authenticator import Principal
from social_login.config import APP_HOST, APP_PORT
from social_login.database import init_db
from social_login.dependencies import (
    get_gateway,
    get_login_flow,
    get_login_rate_limiter,
    get_user_directory,
    require_session,
)
from social_login.errors import LoginError, RateLimited, Unauthorized
from social_login.login_flow import LoginFlowController
from social_login.rate_limit import RateLimiter
from social_login.users import UserDirectory

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and discover the provider on startup. Discovery failure aborts startup."""
    init_db()
    get_gateway()
    yield


app = FastAPI(title="Social Login", version="0.1.0", lifespan=lifespan)
app.include_router(audit_router)


@app.exception_handler(LoginError)
async def login_error_handler(request: Request, exc: LoginError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=exc.headers)


def enforce_login_rate_limit(
    request: Request,
    limiter: Annotated[RateLimiter, Depends(get_login_rate_limiter)],
) -> None:
    allowed, retry_after = limiter.check_and_consume(get_client_ip(request) or "unknown")
    if not allowed:
        raise RateLimited(headers={"Retry-After": str(retry_after)})


async def _read_login_body(request: Request) -> dict:
    """Accept JSON or form-encoded {state, id_token}. Anything unparseable counts as empty."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith(("application/x-www-form-urlencoded", "multipart/form-data")):
        form = await request.form()
        data = dict(form)
    else:
        try:
            data = await request.json()
        except ValueError:
            return {}
    if not isinstance(data, dict):
        return {}
    return {k: v for k, v in data.items() if isinstance(v, str)}


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok", "service": "social_login"}


@app.get("/facebook/login", dependencies=[Depends(enforce_login_rate_limit)])
def facebook_login_start(
    request: Request,
    flow: Annotated[LoginFlowController, Depends(get_login_flow)],
):
    """Persist a random state + nonce, then redirect to the Facebook authorization URL."""
    url = flow.begin_login()
    log_audit(EVENT_LOGIN_STARTED, ip=get_client_ip(request))
    return RedirectResponse(url=url, status_code=302)


@app.post("/facebook/login", dependencies=[Depends(enforce_login_rate_limit)])
async def facebook_login_complete(
    request: Request,
    flow: Annotated[LoginFlowController, Depends(get_login_flow)],
):
    """
    Exchange {state, id_token} from the provider redirect for an opaque access_token.
    412 if id_token is missing; 400 if state is unknown/expired or the id_token is rejected.
    """
    body = await _read_login_body(request)
    ip = get_client_ip(request)
    try:
        issued = await run_in_threadpool(flow.complete_login, body.get("state"), body.get("id_token"))
    except LoginError as e:
        logger.info("Login failed (%s) from %s", e.code, ip)
        await run_in_threadpool(log_audit, EVENT_LOGIN_FAIL, ip=ip, outcome=OUTCOME_FAIL, reason=e.code)
        raise
    await run_in_threadpool(log_audit, EVENT_LOGIN_OK, user_id=issued.user_id, ip=ip)
    return issued.to_dict()


@app.get("/user-info")
def user_info(
    principal: Annotated[Principal, Depends(require_session)],
    users: Annotated[UserDirectory, Depends(get_user_directory)],
):
    """Requires a valid session token. Returns the logged-in user's record."""
    user = users.get(principal.user_id)
    if user is None:
        raise Unauthorized("user not found")
    return user.to_dict()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "social_login.main:app",
        host=APP_HOST,
        port=APP_PORT,
        reload=True,
    )
