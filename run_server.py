#!/usr/bin/env python3
"""
Script to run the API server.
"""
from catalog_api.main import run

if __name__ == "__main__":
    run()
