import logging
from contextlib import asynccontextmanager
from typing import Optional

from bson import ObjectId
from fastapi import Depends, FastAPI, File, Form, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel
from pymongo.database import Database
from starlette.concurrency import run_in_threadpool

import channels
import videos
from auth import get_current_user_id
from config import get_settings
from database import connect, ensure_indexes, get_db, objid
from media import MediaFile, MediaStore, build_media_store, get_media_store
from middleware import error_middleware, request_id_middleware
from schemas import Reaction

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_settings()
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    client = connect(config)
    app.state.db = client[config.database_name]
    ensure_indexes(app.state.db)
    app.state.media = build_media_store(config)
    logger.info("Connected to %s, media backend %s", config.database_name, config.media_backend)

    yield

    app.state.media.close()
    client.close()


app = FastAPI(title="Video Sharing Backend", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.middleware("http")(error_middleware)
app.middleware("http")(request_id_middleware)

# Local media store files are served from here
if settings.media_backend == "local":
    app.mount(settings.media_base_url, StaticFiles(directory=settings.upload_dir, check_dir=False), name="static")


# -------------------- Models --------------------
class CreateChannelRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class CommentRequest(BaseModel):
    text: Optional[str] = None


# -------------------- Helpers --------------------

async def read_media(upload: Optional[UploadFile]) -> Optional[MediaFile]:
    if upload is None:
        return None
    return MediaFile(data=await upload.read(), filename=upload.filename, content_type=upload.content_type)


# -------------------- Basic Routes --------------------
@app.get("/")
def read_root():
    return {"message": "Video Sharing Backend is running"}


@app.get("/test")
def test_database(db: Database = Depends(get_db)):
    info = {
        "backend": "running",
        "database_connected": False,
        "collections": []
    }
    try:
        info["collections"] = db.list_collection_names()
        info["database_connected"] = True
    except Exception as e:
        info["error"] = str(e)
    return info


# -------------------- Channels --------------------
@app.post("/channel/create", status_code=status.HTTP_201_CREATED)
def create_channel(payload: CreateChannelRequest, user_id: ObjectId = Depends(get_current_user_id),
                   db: Database = Depends(get_db)):
    return channels.create_channel(db, user_id, payload.name, payload.description)


@app.get("/channel/get/{channel_id}")
def get_channel(channel_id: str, user_id: ObjectId = Depends(get_current_user_id), db: Database = Depends(get_db)):
    return channels.get_channel(db, objid(channel_id))


@app.post("/channel/subscribe/{channel_id}")
def subscribe_channel(channel_id: str, user_id: ObjectId = Depends(get_current_user_id),
                      db: Database = Depends(get_db)):
    channels.subscribe(db, objid(channel_id), user_id)
    return {"message": "Subscribed successfully"}


@app.post("/channel/unsubscribe/{channel_id}")
def unsubscribe_channel(channel_id: str, user_id: ObjectId = Depends(get_current_user_id),
                        db: Database = Depends(get_db)):
    channels.unsubscribe(db, objid(channel_id), user_id)
    return {"message": "Unsubscribed successfully"}


@app.get("/channel/current-user")
def current_user_channel(user_id: ObjectId = Depends(get_current_user_id), db: Database = Depends(get_db)):
    return channels.get_owner_channel(db, user_id)


@app.get("/channel/check-subscription/{channel_id}")
def check_subscription(channel_id: str, user_id: ObjectId = Depends(get_current_user_id),
                       db: Database = Depends(get_db)):
    return {"subscribed": channels.is_subscribed(db, objid(channel_id), user_id)}


# -------------------- Videos --------------------
@app.post("/video/upload", status_code=status.HTTP_201_CREATED)
async def upload_video(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    video: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
    media: MediaStore = Depends(get_media_store),
):
    return await run_in_threadpool(
        videos.upload_video, db, media, user_id, title, description,
        await read_media(video), await read_media(thumbnail),
    )


@app.get("/video/get")
def list_videos(user_id: ObjectId = Depends(get_current_user_id), db: Database = Depends(get_db)):
    return videos.list_videos(db)


@app.get("/video/get/{video_id}")
def get_video(video_id: str, user_id: ObjectId = Depends(get_current_user_id), db: Database = Depends(get_db)):
    return videos.get_video(db, video_id)


@app.put("/video/update-video/{video_id}")
async def update_video(
    video_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    video: Optional[UploadFile] = File(None),
    thumbnail: Optional[UploadFile] = File(None),
    user_id: ObjectId = Depends(get_current_user_id),
    db: Database = Depends(get_db),
    media: MediaStore = Depends(get_media_store),
):
    return await run_in_threadpool(
        videos.update_video, db, media, objid(video_id), title, description,
        await read_media(video), await read_media(thumbnail),
    )


@app.delete("/video/delete/{video_id}")
def delete_video(video_id: str, user_id: ObjectId = Depends(get_current_user_id), db: Database = Depends(get_db)):
    videos.delete_video(db, objid(video_id))
    return {"message": "Video deleted successfully"}


@app.post("/video/like/{video_id}")
def like_video(video_id: str, user_id: ObjectId = Depends(get_current_user_id), db: Database = Depends(get_db)):
    videos.react(db, objid(video_id), user_id, Reaction.LIKE)
    return {"message": "Video liked successfully"}


@app.post("/video/dislike/{video_id}")
def dislike_video(video_id: str, user_id: ObjectId = Depends(get_current_user_id), db: Database = Depends(get_db)):
    videos.react(db, objid(video_id), user_id, Reaction.DISLIKE)
    return {"message": "Video disliked successfully"}


@app.post("/video/comment/{video_id}")
def comment_video(video_id: str, payload: CommentRequest, user_id: ObjectId = Depends(get_current_user_id),
                  db: Database = Depends(get_db)):
    videos.add_comment(db, objid(video_id), user_id, payload.text)
    return {"message": "Comment added successfully"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
