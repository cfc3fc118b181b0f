class BookNotFoundError(ValueError):
    """A write targeted a book id that matched no row."""

    def __init__(self, book_id: int | None) -> None:
        self.book_id = book_id
        super().__init__(f"Book with id {book_id} not found")
