import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lostfound.admin import router as admin_router
from lostfound.config import get_settings
from lostfound.errors import install_error_handlers
from lostfound.reports import router as reports_router
from lostfound.users import router as users_router

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Campus Lost & Found API")

app.include_router(reports_router.router)
app.include_router(users_router.router)
app.include_router(admin_router.router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)


@app.get("/")
def root():
    return {"message": "Lost & Found API running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=4000)
