class TagFileError(Exception):
    pass

class TagFileClosedError(TagFileError):
    """Raised when a handle is used after close() or before init()."""
    pass

class ReaderBusyError(TagFileError):
    """Raised when a read is started while another one on the same handle is still pending."""
    pass
