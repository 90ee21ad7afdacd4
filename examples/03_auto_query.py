"""
Example 03: Auto Queries and Portability

This example demonstrates building INSERT/UPDATE statements from a column
mapping, portable error codes and the portability options.
"""

from portable_query import (
    AutoQueryMode,
    ConstraintError,
    FetchMode,
    Portability,
    UnintendedConsequencesError,
    connect,
)


def main():
    db = connect("sqlite:///:memory:", {"portability": Portability.ALL})
    db.query("CREATE TABLE products (id INTEGER PRIMARY KEY, name TEXT NOT NULL, price REAL)")

    print("=== Auto Queries ===\n")

    print(db.build_manip_sql("products", ["id", "name", "price"]))
    db.auto_execute("products", {"id": 1, "name": "Widget   ", "price": 9.5})
    db.auto_execute("products", {"id": 2, "name": "Gadget", "price": None})
    db.auto_execute("products", {"price": 12.0}, AutoQueryMode.UPDATE, "id = 2")

    # RTRIM and NULL_TO_EMPTY are part of Portability.ALL
    for row in db.get_all("SELECT id AS ID, name, price FROM products", fetchmode=FetchMode.ASSOC):
        print(f"  {row}")
    print()

    # An UPDATE without WHERE is refused unless explicitly allowed
    try:
        db.auto_execute("products", {"price": 0}, AutoQueryMode.UPDATE)
    except UnintendedConsequencesError as e:
        print(f"Refused: {e}")

    # Backend errors arrive with a portable code and the native one
    try:
        db.auto_execute("products", {"id": 1, "name": "Duplicate"})
    except ConstraintError as e:
        print(f"Caught {type(e).__name__}: code={e.code.name} native={e.native_code!r}")

    # Sequences are emulated with a table on SQLite
    print(f"\nNext order ids: {db.next_id('orders')}, {db.next_id('orders')}")

    db.disconnect()


if __name__ == "__main__":
    main()
