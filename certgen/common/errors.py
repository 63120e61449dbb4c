"""Error taxonomy for certificate issuance. Every error here is fatal."""


class CertGenError(Exception):
    """Base class for all issuance failures."""


class UsageError(CertGenError):
    """Bad or inconsistent command-line input."""


class ExistingFilesError(UsageError):
    """Output files already exist and overwriting was not requested."""

    def __init__(self, files):
        self.files = list(files)
        quoted = " ".join(f'"{f}"' for f in self.files)
        super().__init__(
            f"the following files already exist: {quoted}. "
            "To overwrite files, add `--overwrite`."
        )


class EntropyError(CertGenError):
    """Random source or key generation failed."""


class AuthorityLoadError(CertGenError):
    """Existing CA certificate or key could not be loaded or do not match."""


class SigningError(CertGenError):
    """The signing routine rejected the template or issuer."""


class OutputError(CertGenError):
    """Writing (or inspecting) an output file failed."""
