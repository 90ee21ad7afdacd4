"""
Example 01: Basic Query Execution

This example demonstrates the retrieval helpers: get_one, get_row, get_col,
get_assoc and get_all.
"""

from portable_query import FetchMode, connect


def main():
    db = connect("sqlite:///:memory:")

    db.query("""
        CREATE TABLE users (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL,
            active INTEGER DEFAULT 1
        )
    """)
    db.query("INSERT INTO users (name, email) VALUES ('Alice', 'alice@example.com')")
    db.query("INSERT INTO users (name, email) VALUES ('Bob', 'bob@example.com')")
    db.query("INSERT INTO users (name, email, active) VALUES ('Charlie', 'charlie@example.com', 0)")

    print("=== Basic Query Execution ===\n")

    # get_one: first column of the first row
    count = db.get_one("SELECT COUNT(*) FROM users")
    print(f"get_one result: {count} total users\n")

    # get_row: a single row, in the requested fetch mode
    user = db.get_row("SELECT * FROM users WHERE id = ?", [1], FetchMode.ASSOC)
    print(f"get_row result: {user}")
    print(f"User name: {user['name']}\n")

    # get_col: one column of every row
    names = db.get_col("SELECT name FROM users ORDER BY name")
    print(f"get_col result: {names}\n")

    # get_assoc: rows keyed by the first column
    emails = db.get_assoc("SELECT id, email FROM users")
    print(f"get_assoc result: {emails}\n")

    # get_all: every row
    users = db.get_all("SELECT * FROM users WHERE active = ?", [1], FetchMode.ASSOC)
    print(f"get_all result ({len(users)} rows):")
    for user in users:
        print(f"  - {user['name']} ({user['email']})")
    print()

    db.disconnect()


if __name__ == "__main__":
    main()
