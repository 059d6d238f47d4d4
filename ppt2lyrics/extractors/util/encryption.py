import io

import olefile

# Streams written by Office when a document is password-protected
OOXML_ENCRYPTION_STREAMS = ("EncryptionInfo", "EncryptedPackage", "DataSpaces")
PPT_ENCRYPTION_STREAMS = ("EncryptedSummary", "EncryptedSummaryInformation")


def has_ole_encryption_stream(ole: olefile.OleFileIO) -> bool:
    """True if an open OLE container wraps an encrypted OOXML package."""
    return any(ole.exists(stream) for stream in OOXML_ENCRYPTION_STREAMS)


def is_ppt_encrypted(ole: olefile.OleFileIO) -> bool:
    """True if an open OLE container holds an encrypted presentation of either kind."""
    if has_ole_encryption_stream(ole):
        return True
    return any(ole.exists(stream) for stream in PPT_ENCRYPTION_STREAMS)


def is_ooxml_encrypted(file_like: io.BytesIO) -> bool:
    """
    True if the buffer is an encrypted .pptx.

    Office stores encrypted OOXML packages inside an OLE container instead
    of a plain ZIP archive.
    """
    file_like.seek(0)
    if not olefile.isOleFile(file_like):
        file_like.seek(0)
        return False

    file_like.seek(0)
    with olefile.OleFileIO(file_like) as ole:
        encrypted = has_ole_encryption_stream(ole)
    file_like.seek(0)
    return encrypted
