"""Custom exceptions for asset reading and writing"""


class CrowdsmithError(Exception):
    """Base exception for CrowdSmith errors"""
    pass


class AssetReadError(CrowdsmithError):
    """Input asset is unreadable, malformed, or uses unsupported features"""
    pass


class AssetWriteError(CrowdsmithError):
    """Document could not be serialized"""
    pass
