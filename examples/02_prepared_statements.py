"""
Example 02: Prepared Statements

This example demonstrates the three placeholder kinds:

    ?  scalar  - quoted according to its type
    !  misc    - inserted verbatim
    &  opaque  - the contents of the named file, quoted
"""

import tempfile
from pathlib import Path

from portable_query import MismatchError, connect


def main():
    db = connect("sqlite:///:memory:")
    db.query("CREATE TABLE notes (id INTEGER PRIMARY KEY, title TEXT, body TEXT)")

    print("=== Prepared Statements ===\n")

    stmt = db.prepare("INSERT INTO notes (id, title, body) VALUES (?, ?, &)")

    # Opaque placeholders read the value from a file
    with tempfile.TemporaryDirectory() as tmp:
        body = Path(tmp) / "body.txt"
        body.write_text("It's stored from a file.", encoding="utf-8")
        print(f"Compiled SQL: {db.compile(stmt, [1, 'First', str(body)])}")
        db.execute(stmt, [1, "First", str(body)])

    db.free_prepared(stmt)

    # One statement, many rows
    stmt = db.prepare("INSERT INTO notes (id, title) VALUES (?, ?)")
    db.execute_multiple(stmt, [(2, "Second"), (3, "O'Reilly")])
    db.free_prepared(stmt)

    # Misc placeholders are inserted verbatim
    titles = db.get_col("SELECT title FROM notes ORDER BY !", ["id DESC"])
    print(f"Titles, newest first: {titles}\n")

    # The number of values must match the number of placeholders
    try:
        db.query("SELECT * FROM notes WHERE id = ? AND title = ?", [1])
    except MismatchError as e:
        print(f"Caught MismatchError: {e} ({e.user_info})")

    db.disconnect()


if __name__ == "__main__":
    main()
