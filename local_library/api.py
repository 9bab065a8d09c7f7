import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response

from local_library.config import settings
from local_library.database import DocumentStore, initialize_database
from local_library.errors import CatalogError
from local_library.services import AuthorService, BookInstanceService, BookService, GenreService
from local_library.views import Outcome, Redirect, ViewModel

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.state.store = initialize_database(settings.database_file)
    logger.info(f"{settings.app_name} {settings.app_version} started ({settings.environment})")
    yield


app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug, lifespan=lifespan)


# --- Dependencies ---
def get_store(request: Request) -> DocumentStore:
    """The document store created at startup."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        store = initialize_database(settings.database_file)
        request.app.state.store = store
    return store


def get_author_service(store: DocumentStore = Depends(get_store)) -> AuthorService:
    return AuthorService(store)


def get_genre_service(store: DocumentStore = Depends(get_store)) -> GenreService:
    return GenreService(store)


def get_book_service(store: DocumentStore = Depends(get_store)) -> BookService:
    return BookService(store)


def get_bookinstance_service(store: DocumentStore = Depends(get_store)) -> BookInstanceService:
    return BookInstanceService(store)


# --- Helpers ---
async def read_form(request: Request) -> Dict[str, Any]:
    """Form fields as a dict; a repeated field becomes a list of its values."""
    form = await request.form()
    data: Dict[str, Any] = {}
    for key, value in form.multi_items():
        if key not in data:
            data[key] = value
        elif isinstance(data[key], list):
            data[key].append(value)
        else:
            data[key] = [data[key], value]
    return data


def render(outcome: Outcome) -> Response:
    if isinstance(outcome, Redirect):
        return RedirectResponse(outcome.url, status_code=303)
    return JSONResponse(outcome.to_dict())


def _error_view(status_code: int, message: str) -> JSONResponse:
    view = ViewModel("error", {"title": "Error", "message": message, "status": status_code})
    return JSONResponse(status_code=status_code, content=view.to_dict())


# --- Error handling ---
@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    logger.info(f"{request.method} {request.url.path}: {exc.message} ({exc.status_code})")
    return _error_view(exc.status_code, exc.message)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
    return _error_view(500, "Internal Server Error")


# --- Health ---
@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "version": settings.app_version,
    }


@app.get("/")
async def read_root():
    return RedirectResponse("/catalog", status_code=303)


# --- Catalog home ---
@app.get("/catalog")
async def catalog_index(service: BookService = Depends(get_book_service)):
    return render(await service.index())


# --- Books ---
@app.get("/catalog/book/create")
async def book_create_get(service: BookService = Depends(get_book_service)):
    return render(await service.create_get())


@app.post("/catalog/book/create")
async def book_create_post(request: Request, service: BookService = Depends(get_book_service)):
    return render(await service.create_post(await read_form(request)))


@app.get("/catalog/book/{book_id}/delete")
async def book_delete_get(book_id: str, service: BookService = Depends(get_book_service)):
    return render(await service.delete_get(book_id))


@app.post("/catalog/book/{book_id}/delete")
async def book_delete_post(book_id: str, service: BookService = Depends(get_book_service)):
    return render(await service.delete_post(book_id))


@app.get("/catalog/book/{book_id}/update")
async def book_update_get(book_id: str, service: BookService = Depends(get_book_service)):
    return render(await service.update_get(book_id))


@app.post("/catalog/book/{book_id}/update")
async def book_update_post(book_id: str, request: Request, service: BookService = Depends(get_book_service)):
    return render(await service.update_post(book_id, await read_form(request)))


@app.get("/catalog/book/{book_id}")
async def book_detail(book_id: str, service: BookService = Depends(get_book_service)):
    return render(await service.detail(book_id))


@app.get("/catalog/books")
async def book_list(service: BookService = Depends(get_book_service)):
    return render(await service.list())


# --- Authors ---
@app.get("/catalog/author/create")
async def author_create_get(service: AuthorService = Depends(get_author_service)):
    return render(await service.create_get())


@app.post("/catalog/author/create")
async def author_create_post(request: Request, service: AuthorService = Depends(get_author_service)):
    return render(await service.create_post(await read_form(request)))


@app.get("/catalog/author/{author_id}/delete")
async def author_delete_get(author_id: str, service: AuthorService = Depends(get_author_service)):
    return render(await service.delete_get(author_id))


@app.post("/catalog/author/{author_id}/delete")
async def author_delete_post(author_id: str, service: AuthorService = Depends(get_author_service)):
    return render(await service.delete_post(author_id))


@app.get("/catalog/author/{author_id}/update")
async def author_update_get(author_id: str, service: AuthorService = Depends(get_author_service)):
    return render(await service.update_get(author_id))


@app.post("/catalog/author/{author_id}/update")
async def author_update_post(author_id: str, request: Request,
                             service: AuthorService = Depends(get_author_service)):
    return render(await service.update_post(author_id, await read_form(request)))


@app.get("/catalog/author/{author_id}")
async def author_detail(author_id: str, service: AuthorService = Depends(get_author_service)):
    return render(await service.detail(author_id))


@app.get("/catalog/authors")
async def author_list(service: AuthorService = Depends(get_author_service)):
    return render(await service.list())


# --- Genres ---
@app.get("/catalog/genre/create")
async def genre_create_get(service: GenreService = Depends(get_genre_service)):
    return render(await service.create_get())


@app.post("/catalog/genre/create")
async def genre_create_post(request: Request, service: GenreService = Depends(get_genre_service)):
    return render(await service.create_post(await read_form(request)))


@app.get("/catalog/genre/{genre_id}/delete")
async def genre_delete_get(genre_id: str, service: GenreService = Depends(get_genre_service)):
    return render(await service.delete_get(genre_id))


@app.post("/catalog/genre/{genre_id}/delete")
async def genre_delete_post(genre_id: str, service: GenreService = Depends(get_genre_service)):
    return render(await service.delete_post(genre_id))


@app.get("/catalog/genre/{genre_id}/update")
async def genre_update_get(genre_id: str, service: GenreService = Depends(get_genre_service)):
    return render(await service.update_get(genre_id))


@app.post("/catalog/genre/{genre_id}/update")
async def genre_update_post(genre_id: str, request: Request, service: GenreService = Depends(get_genre_service)):
    return render(await service.update_post(genre_id, await read_form(request)))


@app.get("/catalog/genre/{genre_id}")
async def genre_detail(genre_id: str, service: GenreService = Depends(get_genre_service)):
    return render(await service.detail(genre_id))


@app.get("/catalog/genres")
async def genre_list(service: GenreService = Depends(get_genre_service)):
    return render(await service.list())


# --- Book copies ---
@app.get("/catalog/bookinstance/create")
async def bookinstance_create_get(service: BookInstanceService = Depends(get_bookinstance_service)):
    return render(await service.create_get())


@app.post("/catalog/bookinstance/create")
async def bookinstance_create_post(request: Request,
                                   service: BookInstanceService = Depends(get_bookinstance_service)):
    return render(await service.create_post(await read_form(request)))


@app.get("/catalog/bookinstance/{instance_id}/delete")
async def bookinstance_delete_get(instance_id: str,
                                  service: BookInstanceService = Depends(get_bookinstance_service)):
    return render(await service.delete_get(instance_id))


@app.post("/catalog/bookinstance/{instance_id}/delete")
async def bookinstance_delete_post(instance_id: str,
                                   service: BookInstanceService = Depends(get_bookinstance_service)):
    return render(await service.delete_post(instance_id))


@app.get("/catalog/bookinstance/{instance_id}/update")
async def bookinstance_update_get(instance_id: str,
                                  service: BookInstanceService = Depends(get_bookinstance_service)):
    return render(await service.update_get(instance_id))


@app.post("/catalog/bookinstance/{instance_id}/update")
async def bookinstance_update_post(instance_id: str, request: Request,
                                   service: BookInstanceService = Depends(get_bookinstance_service)):
    return render(await service.update_post(instance_id, await read_form(request)))


@app.get("/catalog/bookinstance/{instance_id}")
async def bookinstance_detail(instance_id: str, service: BookInstanceService = Depends(get_bookinstance_service)):
    return render(await service.detail(instance_id))


@app.get("/catalog/bookinstances")
async def bookinstance_list(service: BookInstanceService = Depends(get_bookinstance_service)):
    return render(await service.list())
