"""
Constants module for certsync.

This module defines the constants used when reading and serializing
certificate templates:
- PKI certificate template flags
- Default key and hash algorithms of the enrollment policy format
- Algorithm name to OID mappings for schema version 4 templates
- OID to friendly name mappings
"""

from certsync.lib.structs import IntFlag

# =========================================================================
# PKI Certificate Template Flags
# =========================================================================


# Source: https://learn.microsoft.com/en-us/openspecs/windows_protocols/ms-crtd/6cc7eb79-3e84-477a-b398-b0ff2b68a6c0
class TemplateFlags(IntFlag):
    """
    General template flags (MS-CRTD 2.4 flags attribute).
    """

    NONE = 0x00000000
    ADD_EMAIL = 0x00000002
    PUBLISH_TO_DS = 0x00000008
    EXPORTABLE_KEY = 0x00000010
    AUTO_ENROLLMENT = 0x00000020
    MACHINE_TYPE = 0x00000040
    IS_CA = 0x00000080
    ADD_TEMPLATE_NAME = 0x00000200
    IS_CROSS_CA = 0x00000800
    DO_NOT_PERSIST_IN_DB = 0x00001000
    IS_DEFAULT = 0x00010000
    IS_MODIFIED = 0x00020000


# Source: https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-crtd/ec71fd43-61c2-407b-83c9-b52272dec8a1
class EnrollmentFlag(IntFlag):
    """
    Enrollment behaviour flags (MS-CRTD 2.26 msPKI-Enrollment-Flag).
    """

    NONE = 0x00000000
    INCLUDE_SYMMETRIC_ALGORITHMS = 0x00000001
    PEND_ALL_REQUESTS = 0x00000002
    PUBLISH_TO_KRA_CONTAINER = 0x00000004
    PUBLISH_TO_DS = 0x00000008
    AUTO_ENROLLMENT_CHECK_USER_DS_CERTIFICATE = 0x00000010
    AUTO_ENROLLMENT = 0x00000020
    PREVIOUS_APPROVAL_VALIDATE_REENROLLMENT = 0x00000040
    USER_INTERACTION_REQUIRED = 0x00000100
    REMOVE_INVALID_CERTIFICATE_FROM_PERSONAL_STORE = 0x00000400
    ALLOW_ENROLL_ON_BEHALF_OF = 0x00000800
    ADD_OCSP_NOCHECK = 0x00001000
    ENABLE_KEY_REUSE_ON_NT_TOKEN_KEYSET_STORAGE_FULL = 0x00002000
    NOREVOCATIONINFOINISSUEDCERTS = 0x00004000
    INCLUDE_BASIC_CONSTRAINTS_FOR_EE_CERTS = 0x00008000
    ALLOW_PREVIOUS_APPROVAL_KEYBASEDRENEWAL_VALIDATE_REENROLLMENT = 0x00010000
    ISSUANCE_POLICIES_FROM_REQUEST = 0x00020000
    SKIP_AUTO_RENEWAL = 0x00040000
    NO_SECURITY_EXTENSION = 0x00080000


# Source: https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-crtd/f6122d87-b999-4b92-bff8-f465e8949667
class PrivateKeyFlag(IntFlag):
    """
    Private key handling flags (MS-CRTD 2.27 msPKI-Private-Key-Flag).
    """

    NONE = 0x00000000
    REQUIRE_PRIVATE_KEY_ARCHIVAL = 0x00000001
    EXPORTABLE_KEY = 0x00000010
    STRONG_KEY_PROTECTION_REQUIRED = 0x00000020
    REQUIRE_ALTERNATE_SIGNATURE_ALGORITHM = 0x00000040
    REQUIRE_SAME_KEY_RENEWAL = 0x00000080
    USE_LEGACY_PROVIDER = 0x00000100
    EK_TRUST_ON_USE = 0x00000200
    EK_VALIDATE_CERT = 0x00000400
    EK_VALIDATE_KEY = 0x00000800
    ATTEST_PREFERRED = 0x00001000
    ATTEST_REQUIRED = 0x00002000
    ATTESTATION_WITHOUT_POLICY = 0x00004000
    HELLO_LOGON_KEY = 0x00200000


# Source: https://docs.microsoft.com/en-us/openspecs/windows_protocols/ms-crtd/1192823c-d839-4bc3-9b6b-fa8c53507ae1
class CertificateNameFlag(IntFlag):
    """
    Subject name construction flags (MS-CRTD 2.28 msPKI-Certificate-Name-Flag).
    """

    NONE = 0x00000000
    ENROLLEE_SUPPLIES_SUBJECT = 0x00000001
    ADD_EMAIL = 0x00000002
    ADD_OBJ_GUID = 0x00000004
    OLD_CERT_SUPPLIES_SUBJECT_AND_ALT_NAME = 0x00000008
    ADD_DIRECTORY_PATH = 0x00000100
    ENROLLEE_SUPPLIES_SUBJECT_ALT_NAME = 0x00010000
    SUBJECT_ALT_REQUIRE_DOMAIN_DNS = 0x00400000
    SUBJECT_ALT_REQUIRE_SPN = 0x00800000
    SUBJECT_ALT_REQUIRE_DIRECTORY_GUID = 0x01000000
    SUBJECT_ALT_REQUIRE_UPN = 0x02000000
    SUBJECT_ALT_REQUIRE_EMAIL = 0x04000000
    SUBJECT_ALT_REQUIRE_DNS = 0x08000000
    SUBJECT_REQUIRE_DNS_AS_CN = 0x10000000
    SUBJECT_REQUIRE_EMAIL = 0x20000000
    SUBJECT_REQUIRE_COMMON_NAME = 0x40000000
    SUBJECT_REQUIRE_DIRECTORY_PATH = 0x80000000


# Integer attributes whose values are shown with their flag names
FLAG_ATTRIBUTES = {
    "flags": TemplateFlags,
    "msPKI-Enrollment-Flag": EnrollmentFlag,
    "msPKI-Private-Key-Flag": PrivateKeyFlag,
    "msPKI-Certificate-Name-Flag": CertificateNameFlag,
}

# =========================================================================
# Algorithms
# =========================================================================

# Defaults assumed by enrollment clients when the policy omits the reference
DEFAULT_KEY_ALGORITHM_OID = "1.2.840.113549.1.1.1"  # RSA
DEFAULT_HASH_ALGORITHM_OID = "1.3.14.3.2.26"  # SHA-1

# CNG algorithm names used in schema version 4 msPKI-RA-Application-Policies
PUBLIC_KEY_ALGORITHM_OIDS = {
    "RSA": DEFAULT_KEY_ALGORITHM_OID,
    "DSA": "1.2.840.10040.4.1",
    "ECDH_P256": "1.2.840.10045.2.1",
    "ECDH_P384": "1.2.840.10045.2.1",
    "ECDH_P521": "1.2.840.10045.2.1",
    "ECDSA_P256": "1.2.840.10045.2.1",
    "ECDSA_P384": "1.2.840.10045.2.1",
    "ECDSA_P521": "1.2.840.10045.2.1",
}

HASH_ALGORITHM_OIDS = {
    "MD5": "1.2.840.113549.2.5",
    "SHA1": DEFAULT_HASH_ALGORITHM_OID,
    "SHA256": "2.16.840.1.101.3.4.2.1",
    "SHA384": "2.16.840.1.101.3.4.2.2",
    "SHA512": "2.16.840.1.101.3.4.2.3",
}

SYMMETRIC_ALGORITHM_OIDS = {
    "3DES": "1.2.840.113549.3.7",
    "AES128": "2.16.840.1.101.3.4.1.2",
    "AES192": "2.16.840.1.101.3.4.1.22",
    "AES256": "2.16.840.1.101.3.4.1.42",
}

# =========================================================================
# Object Identifier (OID) Mappings
# =========================================================================

# Extension OIDs emitted for templates
OID_KEY_USAGE = "2.5.29.15"
OID_BASIC_CONSTRAINTS = "2.5.29.19"
OID_CERTIFICATE_POLICIES = "2.5.29.32"
OID_EXTENDED_KEY_USAGE = "2.5.29.37"
OID_CERTIFICATE_TEMPLATE = "1.3.6.1.4.1.311.21.7"
OID_APPLICATION_POLICIES = "1.3.6.1.4.1.311.21.10"

# Source: https://www.pkisolutions.com/object-identifiers-oid-in-pki/
OID_TO_STR_MAP = {
    # Extensions
    OID_KEY_USAGE: "Key Usage",
    OID_BASIC_CONSTRAINTS: "Basic Constraints",
    OID_CERTIFICATE_POLICIES: "Certificate Policies",
    OID_EXTENDED_KEY_USAGE: "Enhanced Key Usage",
    OID_CERTIFICATE_TEMPLATE: "Certificate Template Information",
    OID_APPLICATION_POLICIES: "Application Policies",
    # Algorithms
    DEFAULT_KEY_ALGORITHM_OID: "RSA",
    "1.2.840.10040.4.1": "DSA",
    "1.2.840.10045.2.1": "ECC",
    "1.2.840.113549.2.5": "md5",
    DEFAULT_HASH_ALGORITHM_OID: "sha1",
    "2.16.840.1.101.3.4.2.1": "sha256",
    "2.16.840.1.101.3.4.2.2": "sha384",
    "2.16.840.1.101.3.4.2.3": "sha512",
    "1.2.840.113549.3.7": "3des",
    "2.16.840.1.101.3.4.1.2": "aes128",
    "2.16.840.1.101.3.4.1.22": "aes192",
    "2.16.840.1.101.3.4.1.42": "aes256",
    # Application policies
    "1.3.6.1.4.1.311.10.3.4": "Encrypting File System",
    "1.3.6.1.4.1.311.10.3.4.1": "File Recovery",
    "1.3.6.1.4.1.311.10.3.12": "Document Signing",
    "1.3.6.1.4.1.311.20.2.1": "Certificate Request Agent",
    "1.3.6.1.4.1.311.20.2.2": "Smart Card Logon",
    "1.3.6.1.4.1.311.21.5": "Private Key Archival",
    "1.3.6.1.4.1.311.21.6": "Key Recovery Agent",
    "1.3.6.1.4.1.311.21.19": "Directory Service Email Replication",
    "1.3.6.1.5.5.7.3.1": "Server Authentication",
    "1.3.6.1.5.5.7.3.2": "Client Authentication",
    "1.3.6.1.5.5.7.3.3": "Code Signing",
    "1.3.6.1.5.5.7.3.4": "Secure Email",
    "1.3.6.1.5.5.7.3.8": "Time Stamping",
    "1.3.6.1.5.5.7.3.9": "OCSP Signing",
    "1.3.6.1.5.2.3.4": "PKINIT Client Authentication",
    "1.3.6.1.5.2.3.5": "KDC Authentication",
    "2.5.29.37.0": "Any Purpose",
    # Issuance policies
    "2.5.29.32.0": "All issuance policies",
}
