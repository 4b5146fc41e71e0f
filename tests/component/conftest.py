"""
Component Test Layer Configuration

Structure:
    tests/component/
    └── availability_service/   Service, sweeper, startup and HTTP boundary
                                (mocks.py: in-memory repository)

Usage:
    pytest tests/component -v
    pytest tests/component/availability_service -v
"""
import os
import sys

# Set testing environment BEFORE any imports
os.environ["ENV"] = "testing"
os.environ["ENVIRONMENT"] = "testing"

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))
