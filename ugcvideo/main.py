from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ugcvideo.routes.videos import router as videos_router
from ugcvideo.routes.users import router as users_router
from ugcvideo.routes.status import router as status_router
from ugcvideo.utils.config import HOST, PORT
from ugcvideo.utils.logger import get_logger


logger = get_logger("server")

app = FastAPI(title="UGC Video Backend", version="1.0.0")

# The dashboard front end is served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    return {"service": "ugcvideo", "status": "ok"}


app.include_router(videos_router)
app.include_router(users_router)
app.include_router(status_router)


if __name__ == "__main__":
    import uvicorn
    logger.info("Starting UGC video backend on %s:%s", HOST, PORT)
    uvicorn.run("ugcvideo.main:app", host=HOST, port=PORT, reload=False)
