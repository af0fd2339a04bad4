import psycopg2
import os

def get_conn():
    return psycopg2.connect(
        dbname=os.getenv("PGDATABASE", "interactx"),
        user=os.getenv("PGUSER", "postgres"),
        password=os.getenv("PGPASSWORD", ""),
        host=os.getenv("PGHOST", "localhost"),
        port=os.getenv("PGPORT", 5432),
    )
