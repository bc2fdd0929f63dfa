#!/usr/bin/env python3
"""
Startup script for the Field Inspection App
"""
from src.inspection_app.app import main

if __name__ == '__main__':
    main().main_loop()
