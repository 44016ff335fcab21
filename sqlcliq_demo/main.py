from sqlcliq_engine import SqlCliq


def run_demo() -> None:
    db = SqlCliq("demo_databases.json")
    try:
        for line in db.execute("CREATE DATABASE demo").output:
            if line.startswith("Error:") and "already exists" not in line:
                raise RuntimeError(line)
        db.execute("USE demo")

        existing = db.execute("SHOW TABLES").output
        if existing == ["Empty set (0 tables in demo)"]:
            db.execute("CREATE TABLE users (id INT, name VARCHAR(50), score FLOAT, active INT)")
            db.execute("INSERT INTO users VALUES (1, 'Alice', 9.5, 1)")
            db.execute("INSERT INTO users VALUES (2, 'Bob', 7.0, 0)")
            db.execute("INSERT INTO users VALUES (3, 'Cara', 8.8, 1)")

        print("Top active users:")
        for line in db.execute("SELECT id, name, score FROM users WHERE active = 1 ORDER BY score DESC LIMIT 10").output:
            print(line)

        db.execute("UPDATE users SET score = 7.8 WHERE id = 2")
        db.execute("DELETE FROM users WHERE id = 1")

        print("Remaining rows:")
        for line in db.execute("SELECT * FROM users ORDER BY id ASC").output:
            print(line)
    finally:
        db.close()


if __name__ == "__main__":
    run_demo()
