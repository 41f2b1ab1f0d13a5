from catalog.models.alias import AuthorAlias
from catalog.models.author import Author
from catalog.models.book import Book, BookAuthor

__all__ = ["Author", "AuthorAlias", "Book", "BookAuthor"]
