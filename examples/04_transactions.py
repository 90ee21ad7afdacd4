"""
Example 04: Transactions

This example demonstrates transaction management with automatic rollback on errors.
"""

from portable_query import ConstraintError, connect


def main():
    db = connect("sqlite:///:memory:")
    db.query("""
        CREATE TABLE users (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE
        )
    """)
    db.query("""
        CREATE TABLE audit_log (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            action TEXT NOT NULL
        )
    """)

    print("=== Transactions ===\n")

    # Successful transaction: both statements are committed
    with db.transaction() as tx:
        tx.query("INSERT INTO users (name, email) VALUES (?, ?)", ["Alice", "alice@example.com"])
        tx.query("INSERT INTO audit_log (action) VALUES (?)", ["created alice"])
    print(f"After commit: {db.get_one('SELECT COUNT(*) FROM users')} user(s)")

    # Failing transaction: the audit entry is rolled back with the user
    try:
        with db.transaction() as tx:
            tx.query("INSERT INTO audit_log (action) VALUES (?)", ["created duplicate"])
            tx.query("INSERT INTO users (name, email) VALUES (?, ?)", ["Eve", "alice@example.com"])
    except ConstraintError as e:
        print(f"Rolled back: {e.user_info}")

    print(f"Audit entries: {db.get_col('SELECT action FROM audit_log')}")

    db.disconnect()


if __name__ == "__main__":
    main()
