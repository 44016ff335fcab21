import time

from sqlcliq_engine import execute


def main() -> None:
    result = execute("CREATE DATABASE bench; USE bench; CREATE TABLE bench (id INT, v TEXT)", None, {})
    store, current = result.store, result.current_database
    n = 2000

    start = time.perf_counter()
    for i in range(1, n + 1):
        store = execute(f"INSERT INTO bench VALUES ({i}, 'x')", current, store).store
    insert_seconds = time.perf_counter() - start

    start = time.perf_counter()
    for i in range(1, n + 1, 10):
        execute(f"SELECT id FROM bench WHERE id = {i}", current, store)
    select_seconds = time.perf_counter() - start

    print(f"Rows inserted: {n}")
    print(f"INSERT TPS: {n / insert_seconds:.2f}")
    print(f"SELECT TPS: {(n // 10) / select_seconds:.2f}")


if __name__ == "__main__":
    main()
