"""Entitlements: access checks, checkout and payment verification."""
