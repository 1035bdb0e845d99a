"""Authentication: application token, hosted auth delegation, route guards."""
