import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, APIRouter, Depends, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from database import check_database, get_db
from models import Post
from schemas import (
    MessageSchema,
    PostCreateSchema,
    PostCreatedSchema,
    PostSchema,
    PostUpdateSchema,
)

config.setup_logging()
logger = logging.getLogger(__name__)

SERVER_ERROR = "Server error."

# Ids outside a signed 64-bit integer cannot match any row
MIN_ID = -(2**63)
MAX_ID = 2**63 - 1


@asynccontextmanager
async def lifespan(app: FastAPI):
    check_database()
    logger.info("API ready on port %s", config.PORT)
    yield


app = FastAPI(
    title="Post API",
    description="CRUD API for blog posts",
    version="1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# ------- ERROR RESPONSES -------

@app.exception_handler(StarletteHTTPException)
def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
def validation_error(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        where = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{where}: {err.get('msg')}" if where else err.get("msg"))
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request. " + "; ".join(problems)},
    )


def not_found(post_id: int):
    return HTTPException(status_code=404, detail=f"Post not found with ID: {post_id}")


def check_id(post_id: int):
    if not MIN_ID <= post_id <= MAX_ID:
        raise not_found(post_id)


def storage_error(db: Session, action: str):
    db.rollback()
    logger.exception("Error on %s", action)
    return HTTPException(status_code=500, detail=SERVER_ERROR)


# ------- ENDPOINTS -------

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=list[PostSchema])
def list_posts(request: Request, db: Session = Depends(get_db)):
    logger.info("GET /posts from origin: %s", request.headers.get("origin"))
    try:
        return db.query(Post).order_by(Post.createdAt.desc(), Post.idPost.desc()).all()
    except SQLAlchemyError:
        raise storage_error(db, "GET /posts")


@router.get("/{post_id}", response_model=PostSchema)
def get_post(post_id: int, db: Session = Depends(get_db)):
    check_id(post_id)
    try:
        post = db.query(Post).filter(Post.idPost == post_id).first()
    except SQLAlchemyError:
        raise storage_error(db, f"GET /posts/{post_id}")

    if not post:
        raise not_found(post_id)
    return post


@router.post("", status_code=201, response_model=PostCreatedSchema)
def create_post(payload: Optional[PostCreateSchema] = None, db: Session = Depends(get_db)):
    # A request without a body is treated like an empty JSON object
    payload = payload or PostCreateSchema()
    if not payload.title:
        raise HTTPException(status_code=400, detail="Title is required.")

    db_post = Post(title=payload.title, description=payload.description)
    try:
        db.add(db_post)
        db.flush()
        post_id = db_post.idPost
        db.commit()
    except SQLAlchemyError:
        raise storage_error(db, "POST /posts")

    # Echo what the client sent, not a re-read of the stored row
    return {
        "idPost": post_id,
        "title": payload.title,
        "description": payload.description,
        "message": "Post created.",
    }


@router.put("/{post_id}", response_model=MessageSchema)
def update_post(
    post_id: int,
    payload: Optional[PostUpdateSchema] = None,
    db: Session = Depends(get_db),
):
    changes = (payload or PostUpdateSchema()).changes()
    if not changes:
        raise HTTPException(
            status_code=400,
            detail="At least one field (title or description) is required.",
        )
    check_id(post_id)

    try:
        matched = (
            db.query(Post)
            .filter(Post.idPost == post_id)
            .update(changes, synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError:
        raise storage_error(db, f"PUT /posts/{post_id}")

    if matched == 0:
        raise not_found(post_id)
    return {"message": "Post updated.", "idPost": post_id}


@router.delete("/{post_id}", response_model=MessageSchema)
def delete_post(post_id: int, db: Session = Depends(get_db)):
    check_id(post_id)
    try:
        deleted = (
            db.query(Post)
            .filter(Post.idPost == post_id)
            .delete(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError:
        raise storage_error(db, f"DELETE /posts/{post_id}")

    if deleted == 0:
        raise not_found(post_id)
    return {"message": "Post deleted.", "idPost": post_id}


@app.get("/")
def health():
    return {"message": "API ready"}


app.include_router(router)
# Older frontends call the same routes under /api
app.include_router(router, prefix="/api", include_in_schema=False)


if __name__ == "__main__":
    uvicorn.run(app, host=config.HOST, port=config.PORT)
