#!/usr/bin/env python3
"""Print bearer tokens for each role, for manual API smoke tests."""
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from homeaudit.api.deps import issue_smoke_token
from homeaudit.core.auth import Role

for role in Role:
    token = issue_smoke_token(f"{role.value}-smoke", role=role, email=f"{role.value}@example.com")
    print(f"{role.value.title()} Token:\n{token}\n")
