from amble.services.storage.records import AppStats, ConversionJob, ConversionStatus, StoredFile

__all__ = ["AppStats", "ConversionJob", "ConversionStatus", "StoredFile"]
