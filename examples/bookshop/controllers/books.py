from typing import Annotated, Dict

from pydantic import BaseModel, Field

from foyer import (
    ModelView,
    NotFoundException,
    RequestParam,
    controller,
    get_mapping,
    post_mapping,
)

BOOKS: Dict[int, dict] = {
    1: {"title": "The Name of the Rose", "author": "Umberto Eco"},
    2: {"title": "Invisible Cities", "author": "Italo Calvino"},
}


class NewBook(BaseModel):
    title: str = Field(min_length=1)
    author: str = Field(min_length=1)


@controller
class BookController:

    @get_mapping("/books")
    def list_books(self, limit: Annotated[int, RequestParam("n")] = 10):
        titles = [book["title"] for book in list(BOOKS.values())[:limit]]
        return "\n".join(titles)

    @get_mapping("/books/{id}")
    def show_book(self, id: int):
        book = BOOKS.get(id)
        if book is None:
            raise NotFoundException(f"No book with id {id}")
        return ModelView("book.html", dict(book, id=id))

    @get_mapping("/books/{title}")
    def find_by_title(self, title: str):
        for book_id, book in BOOKS.items():
            if book["title"].lower() == title.replace("-", " ").lower():
                return ModelView.redirect(f"/books/{book_id}")
        raise NotFoundException(f"No book titled {title}")

    @post_mapping("/books")
    def add_book(self, book: NewBook):
        book_id = max(BOOKS) + 1
        BOOKS[book_id] = book.model_dump()
        return ModelView.redirect(f"/books/{book_id}")
