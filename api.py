import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from config import settings
from lending.author import Author
from lending.errors import InvalidInputError, InvalidStateError, NotFoundError
from lending.library import Library

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

library: Optional[Library] = None


def get_library() -> Library:
    """Dependency returning the process-wide Library."""
    global library
    if library is None:
        library = Library()
    return library


@asynccontextmanager
async def lifespan(app: FastAPI):
    get_library()
    logger.info(f"{settings.app_name} {settings.app_version} started ({settings.environment})")
    yield


app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Models ---
class BookDetailsModel(BaseModel):
    id: str
    isbn: str
    title: str
    author_name: Optional[str] = None
    publication_year: int
    genre: str
    is_available: bool


class AuthorModel(BaseModel):
    id: str
    first_name: str
    last_name: str
    full_name: str
    biography: Optional[str] = None


class BorrowRequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    book_id: Optional[str] = Field(default=None, alias="bookId")
    member_id: Optional[str] = Field(default=None, alias="memberId")


def _author_model(author: Author) -> AuthorModel:
    return AuthorModel(full_name=author.full_name, **author.to_dict())


def _to_http_error(exc: Exception) -> HTTPException:
    """Translate a lending error into the HTTP response it maps to."""
    if isinstance(exc, InvalidInputError):
        return HTTPException(status_code=400, detail={"errors": exc.errors})
    if isinstance(exc, InvalidStateError):
        return HTTPException(status_code=400, detail={"error": exc.message})
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail={"error": exc.message})
    logger.error("Unhandled error while serving request", exc_info=exc)
    return HTTPException(status_code=500, detail={"error": "An unexpected error occurred."})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in err.get("loc", ())[1:]) or "body", "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"detail": {"errors": errors}})


# --- Health ---
@app.get("/health")
def health():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.app_version,
    }


# --- Books ---
@app.get("/books/{book_id}", response_model=BookDetailsModel)
def get_book(book_id: UUID, lib: Library = Depends(get_library)):
    try:
        details = lib.get_book_details(book_id)
    except Exception as e:
        raise _to_http_error(e)
    return BookDetailsModel(**details.to_dict())


@app.post("/books/borrow", status_code=204)
def borrow_book(payload: BorrowRequestModel, lib: Library = Depends(get_library)):
    try:
        lib.borrow_book(payload.book_id, payload.member_id)
    except Exception as e:
        raise _to_http_error(e)
    return Response(status_code=204)


@app.post("/books/return", status_code=204)
def return_book(payload: BorrowRequestModel, lib: Library = Depends(get_library)):
    try:
        lib.return_book(payload.book_id, payload.member_id)
    except Exception as e:
        raise _to_http_error(e)
    return Response(status_code=204)


# --- Authors ---
@app.get("/authors/{author_id}", response_model=AuthorModel)
def get_author(author_id: UUID, lib: Library = Depends(get_library)):
    try:
        author = lib.get_author(author_id)
    except Exception as e:
        raise _to_http_error(e)
    return _author_model(author)


@app.get("/authors", response_model=List[AuthorModel])
def list_authors(lib: Library = Depends(get_library)):
    try:
        authors = lib.list_authors()
    except Exception as e:
        raise _to_http_error(e)
    return [_author_model(a) for a in authors]
