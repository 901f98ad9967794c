#!/usr/bin/env python3
"""
Initialize database, optionally seed demo data, and run the FastAPI application.
"""

import sys

import uvicorn
from coach_pickup.db import init_database
from database.seed_db import seed_demo_data

def main():
    print("🚀 Initializing Coach Pickup Console...")

    print("📊 Creating database schema...")
    init_database()
    print("✅ Database schema created")

    if "--seed" in sys.argv:
        print("🌱 Seeding demo coach, client and program...")
        ids = seed_demo_data()
        print(f"✅ Demo data seeded: {ids}")

    print("🌐 Starting FastAPI server...")
    print("📍 Server will be available at: http://localhost:8000")
    print("📚 API docs will be available at: http://localhost:8000/docs")
    print()

    uvicorn.run(
        "coach_pickup.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )

if __name__ == "__main__":
    main()
