from __future__ import annotations

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from api.auth import bootstrap_admin_from_env, router as auth_router
from api.routes.exports import router as exports_router
from api.routes.notifications import router as notifications_router
from api.routes.pairs import router as pairs_router
from api.routes.selection import router as selection_router
from api.routes.sessions import router as sessions_router
from api.routes.settings import router as settings_router
from api.routes.status import router as status_router
from config.settings import API_CORS_ORIGINS
from storage.db import connect, init_db

app = FastAPI(title="Forex Session Tracker API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=API_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(status_router)
app.include_router(pairs_router)
app.include_router(sessions_router)
app.include_router(selection_router)
app.include_router(notifications_router)
app.include_router(exports_router)
app.include_router(settings_router)


@app.on_event("startup")
def _startup() -> None:
    conn = connect()
    try:
        init_db(conn)
    finally:
        conn.close()

    bootstrap_admin_from_env()


def main() -> None:
    import uvicorn

    uvicorn.run("api.app:app", host="0.0.0.0", port=8000, reload=False)


if __name__ == "__main__":
    main()
