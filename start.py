#!/usr/bin/env python3
"""
Startup script for the Diagram Studio API
"""

import os
import sys


def check_dependencies():
    """Check if required Python packages are installed"""
    required_packages = [
        'fastapi', 'uvicorn', 'groq', 'httpx', 'firebase_admin', 'jinja2'
    ]

    missing_packages = []
    for package in required_packages:
        try:
            __import__(package)
            print(f"✅ {package} is installed")
        except ImportError:
            missing_packages.append(package)
            print(f"❌ {package} is missing")

    if missing_packages:
        print(f"\nPlease install missing packages:")
        print(f"pip install -e .")
        return False

    return True


def check_api_keys():
    """Warn about missing LLM credentials"""
    for key in ('GROQ_API_KEY', 'DEEPSEEK_API_KEY'):
        if os.getenv(key):
            print(f"✅ {key} is set")
        else:
            print(f"⚠️ {key} is not set")


def main():
    print("📊 Diagram Studio API - Startup Check")
    print("=" * 50)

    if not check_dependencies():
        sys.exit(1)

    print()
    check_api_keys()

    print()
    print("🚀 All checks passed! Starting the application...")
    print("📱 Dashboard will be available at: http://localhost:8000")
    print("📚 API documentation at: http://localhost:8000/docs")
    print()

    try:
        import uvicorn
        from config import HOST, PORT, DEBUG
        uvicorn.run("main:app", host=HOST, port=PORT, reload=DEBUG)
    except KeyboardInterrupt:
        print("\n👋 Application stopped by user")
    except Exception as e:
        print(f"❌ Error starting application: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
