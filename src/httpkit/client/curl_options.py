"""
=============================================================================
CURL OPTION TABLES
=============================================================================

Lookup tables between curl command-line flags and libcurl option names.

Option names are libcurl's, without the CURLOPT_ prefix, which is also how
pycurl spells them (``pycurl.USERAGENT``, ``pycurl.SSL_VERIFYPEER``). The
tables never touch pycurl itself; the curl handler resolves names to
pycurl constants when it sends.

    ┌────────────────────┬───────────────────────────────────────────────┐
    │ TABLE              │ MAPS                                          │
    ├────────────────────┼───────────────────────────────────────────────┤
    │ COMMAND_OPTIONS    │ flag         → option name (or tuple)         │
    │ CLIENT_OPTIONS     │ option name  → flag (or tuple of flags)       │
    │ VALUE_OPTIONS      │ flag / name  → None, or the constant the flag │
    │                    │                implies (--http2 → 3)          │
    │ OMIT_OPTIONS       │ flags and names the translator handles itself │
    │ UNRESOLVED_OPTIONS │ names with no command-line counterpart        │
    └────────────────────┴───────────────────────────────────────────────┘

A flag that is not a value option is a boolean switch.
=============================================================================
"""

from types import MappingProxyType
from typing import Any, Dict, Optional, Tuple, Union


# libcurl constants implied by some flags
HTTP_VERSION_1_0 = 1
HTTP_VERSION_1_1 = 2
HTTP_VERSION_2_0 = 3

AUTH_BASIC = 1
AUTH_DIGEST = 2

SSLVERSION_SSLV2 = 2
SSLVERSION_SSLV3 = 3

SSLOPT_ALLOW_BEAST = 1
SSLOPT_NO_REVOKE = 2
SSLOPT_REVOKE_BEST_EFFORT = 8
SSLOPT_AUTO_CLIENT_CERT = 32


COMMAND_OPTIONS: "MappingProxyType[str, Union[str, Tuple[str, ...]]]" = MappingProxyType({
    "--abstract-unix-socket": "ABSTRACT_UNIX_SOCKET",
    "--alt-svc": "ALTSVC",
    "-a": "APPEND",
    "--aws-sigv4": "AWS_SIGV4",
    "--cacert": "CAINFO",
    "--capath": "CAPATH",
    "--connect-timeout": ("CONNECTTIMEOUT", "TIMEOUT"),
    "--connect-to": "CONNECT_TO",
    "-b": "COOKIE",
    "--cookie": "COOKIE",
    "-c": "COOKIEJAR",
    "--cookie-jar": "COOKIEJAR",
    "--crlf": "CRLF",
    "--crlfile": "CRLFILE",
    "-X": ("CUSTOMREQUEST", "POST", "PUT"),
    "--request": ("CUSTOMREQUEST", "POST", "PUT"),
    "--disallow-username-in-url": "DISALLOW_USERNAME_IN_URL",
    "--dns-interface": "DNS_INTERFACE",
    "--dns-ipv4-addr": "DNS_LOCAL_IP4",
    "--dns-ipv6-addr": "DNS_LOCAL_IP6",
    "--dns-servers": "DNS_SERVERS",
    "--doh-insecure": ("DOH_SSL_VERIFYPEER", "DOH_SSL_VERIFYHOST"),
    "--doh-cert-status": "DOH_SSL_VERIFYSTATUS",
    "--doh-url": "DOH_URL",
    "--expect100-timeout": "EXPECT_100_TIMEOUT_MS",
    "-P": "FTPPORT",
    "--ftp-port": "FTPPORT",
    "--ftp-account": "FTP_ACCOUNT",
    "--ftp-alternative-to-user": "FTP_ALTERNATIVE_TO_USER",
    "--ftp-create-dirs": "FTP_CREATE_MISSING_DIRS",
    "--ftp-method": "FTP_FILEMETHOD",
    "--ftp-skip-pasv-ip": "FTP_SKIP_PASV_IP",
    "--ftp-pasv": "FTP_SKIP_PASV_IP",
    "--ftp-ssl-ccc": "FTP_SSL_CCC",
    "--disable-eprt": "FTP_USE_EPRT",
    "--disable-epsv": "FTP_USE_EPSV",
    "--ftp-pret": "FTP_USE_PRET",
    "--delegation": "GSSAPI_DELEGATION",
    "--happy-eyeballs-timeout-ms": "HAPPY_EYEBALLS_TIMEOUT_MS",
    "--haproxy-protocol": "HAPROXYPROTOCOL",
    "-i": "HEADER",
    "--include": "HEADER",
    "--hsts": "HSTS",
    "--http0.9": "HTTP09_ALLOWED",
    "-H": "HTTPHEADER",
    "--header": "HTTPHEADER",
    "-p": "HTTPPROXYTUNNEL",
    "--proxytunnel": "HTTPPROXYTUNNEL",
    "-0": "HTTP_VERSION",
    "--http1.0": "HTTP_VERSION",
    "--http1.1": "HTTP_VERSION",
    "--http2": "HTTP_VERSION",
    "--ignore-content-length": "IGNORE_CONTENT_LENGTH",
    "-T": "INFILE",
    "--upload-file": "INFILE",
    "--interface": "INTERFACE",
    "--krb": "KRBLEVEL",
    "--local-port": ("LOCALPORT", "LOCALPORTRANGE"),
    "--login-options": "LOGIN_OPTIONS",
    "-Y": "LOW_SPEED_LIMIT",
    "--speed-limit": "LOW_SPEED_LIMIT",
    "-y": "LOW_SPEED_TIME",
    "--speed-time": "LOW_SPEED_TIME",
    "--mail-auth": "MAIL_AUTH",
    "--mail-from": "MAIL_FROM",
    "--mail-rcpt": "MAIL_RCPT",
    "--mail-rcpt-allowfails": "MAIL_RCPT_ALLOWFAILS",
    "--max-filesize": "MAXFILESIZE",
    "-m": "MAXLIFETIME_CONN",
    "--max-time": "MAXLIFETIME_CONN",
    "--max-redirs": "MAXREDIRS",
    "-n": "NETRC",
    "--netrc": "NETRC",
    "--netrc-file": "NETRC_FILE",
    "--no-progress-meter": "NOPROGRESS",
    "--noproxy": "NOPROXY",
    "-u": ("USERPWD", "USERNAME", "PASSWORD"),
    "--user": ("USERPWD", "USERNAME", "PASSWORD"),
    "-d": "POSTFIELDS",
    "--data": "POSTFIELDS",
    "-x": "PROXY",
    "--proxy": "PROXY",
    "--proxy-basic": "PROXYAUTH",
    "--proxy-digest": "PROXYAUTH",
    "--proxy-header": "PROXYHEADER",
    "-U": "PROXYUSERPWD",
    "--proxy-user": "PROXYUSERPWD",
    "--proxy-cacert": "PROXY_CAINFO",
    "--proxy-capath": "PROXY_CAPATH",
    "--proxy-crlfile": "PROXY_CRLFILE",
    "--proxy-pass": "PROXY_KEYPASSWD",
    "--proxy-pinnedpubkey": "PROXY_PINNEDPUBLICKEY",
    "--proxy-service-name": "PROXY_SERVICE_NAME",
    "--proxy-cert": "PROXY_SSLCERT",
    "--proxy-cert-type": "PROXY_SSLCERTTYPE",
    "--proxy-key": "PROXY_SSLKEY",
    "--proxy-key-type": "PROXY_SSLKEYTYPE",
    "--proxy-ciphers": "PROXY_SSL_CIPHER_LIST",
    "--proxy-insecure": ("PROXY_SSL_VERIFYHOST", "PROXY_SSL_VERIFYPEER"),
    "--proxy-tls13-ciphers": "PROXY_TLS13_CIPHERS",
    "--proxy-tlspassword": "PROXY_TLSAUTH_PASSWORD",
    "--proxy-tlsauthtype": "PROXY_TLSAUTH_TYPE",
    "--proxy-tlsuser": "PROXY_TLSAUTH_USERNAME",
    "-Q": "QUOTE",
    "--quote": "QUOTE",
    "--random-file": "RANDOM_FILE",
    "-r": "RANGE",
    "--range": "RANGE",
    "-e": "REFERER",
    "--referer": "REFERER",
    "--resolve": "RESOLVE",
    "--sasl-authzid": "SASL_AUTHZID",
    "--sasl-ir": "SASL_IR",
    "--service-name": "SERVICE_NAME",
    "--socks5-basic": "SOCKS5_AUTH",
    "--socks5-gssapi-nec": "SOCKS5_GSSAPI_NEC",
    "--socks5-gssapi-service": "SOCKS5_GSSAPI_SERVICE",
    "--compressed-ssh": "SSH_COMPRESSION",
    "--hostpubmd5": "SSH_HOST_PUBLIC_KEY_MD5",
    "--hostpubsha256": "SSH_HOST_PUBLIC_KEY_SHA256",
    "--pubkey": "SSH_PUBLIC_KEYFILE",
    "-E": "SSLCERT",
    "--cert": "SSLCERT",
    "--cert-type": "SSLCERTTYPE",
    "--engine": "SSLENGINE",
    "--key": "SSLKEY",
    "--pass": "SSLKEYPASSWD",
    "--key-type": "SSLKEYTYPE",
    "-2": "SSLVERSION",
    "--sslv2": "SSLVERSION",
    "-3": "SSLVERSION",
    "--sslv3": "SSLVERSION",
    "--ciphers": "SSL_CIPHER_LIST",
    "--curves": "SSL_EC_CURVES",
    "--alpn": "SSL_ENABLE_ALPN",
    "--no-alpn": "SSL_ENABLE_ALPN",
    "--npn": "SSL_ENABLE_NPN",
    "--no-npn": "SSL_ENABLE_NPN",
    "--false-start": "SSL_FALSESTART",
    "--no-sessionid": "SSL_SESSIONID_CACHE",
    "-k": ("SSL_VERIFYHOST", "SSL_VERIFYPEER"),
    "--insecure": ("SSL_VERIFYHOST", "SSL_VERIFYPEER"),
    "--cert-status": "SSL_VERIFYSTATUS",
    "--stderr": "STDERR",
    "--suppress-connect-headers": "SUPPRESS_CONNECT_HEADERS",
    "--tcp-fastopen": "TCP_FASTOPEN",
    "--keepalive-time": "TCP_KEEPALIVE",
    "--tcp-nodelay": "TCP_NODELAY",
    "-t": "TELNETOPTIONS",
    "--telnet-option": "TELNETOPTIONS",
    "--tftp-blksize": "TFTP_BLKSIZE",
    "--tftp-no-options": "TFTP_NO_OPTIONS",
    "-z": "TIMECONDITION",
    "--time-cond": "TIMECONDITION",
    "--tls13-ciphers": "TLS13_CIPHERS",
    "--tlspassword": "TLSAUTH_PASSWORD",
    "--tlsauthtype": "TLSAUTH_TYPE",
    "--tlsuser": "TLSAUTH_USERNAME",
    "--tr-encoding": "TRANSFER_ENCODING",
    "--no-tr-encoding": "TRANSFER_ENCODING",
    "--unix-socket": "UNIX_SOCKET_PATH",
    "--url": "URL",
    "-A": "USERAGENT",
    "--user-agent": "USERAGENT",
    "--ssl": "USE_SSL",
    "--ssl-reqd": "USE_SSL",
    "-v": "VERBOSE",
    "--verbose": "VERBOSE",
    "--oauth2-bearer": "XOAUTH2_BEARER",
    "--ssl-allow-beast": "SSL_OPTIONS",
    "--ssl-auto-client-cert": "SSL_OPTIONS",
    "--ssl-no-revoke": "SSL_OPTIONS",
    "--ssl-revoke-best-effort": "SSL_OPTIONS",
})

# Flags that switch a feature off. Each option they name is set to 0.
NEGATED_OPTIONS = frozenset({
    "-k", "--insecure", "--proxy-insecure", "--doh-insecure",
    "--disable-eprt", "--disable-epsv", "--no-alpn", "--no-npn",
    "--no-sessionid", "--no-tr-encoding",
})

_VALUE_FLAGS: Dict[str, Any] = {
    "--abstract-unix-socket": None,
    "--alt-svc": None,
    "--aws-sigv4": None,
    "--cacert": None,
    "--capath": None,
    "--connect-timeout": None,
    "--connect-to": None,
    "-b": None,
    "--cookie": None,
    "-c": None,
    "--cookie-jar": None,
    "--crlfile": None,
    "-X": None,
    "--request": None,
    "--dns-interface": None,
    "--dns-ipv4-addr": None,
    "--dns-ipv6-addr": None,
    "--dns-servers": None,
    "--doh-url": None,
    "--expect100-timeout": None,
    "-P": None,
    "--ftp-port": None,
    "--ftp-account": None,
    "--ftp-alternative-to-user": None,
    "--ftp-method": None,
    "--delegation": None,
    "--happy-eyeballs-timeout-ms": None,
    "--hsts": None,
    "-H": None,
    "--header": None,
    "-0": HTTP_VERSION_1_0,
    "--http1.0": HTTP_VERSION_1_0,
    "--http1.1": HTTP_VERSION_1_1,
    "--http2": HTTP_VERSION_2_0,
    "-T": None,
    "--upload-file": None,
    "--interface": None,
    "--krb": None,
    "--local-port": None,
    "--login-options": None,
    "-Y": None,
    "--speed-limit": None,
    "-y": None,
    "--speed-time": None,
    "--mail-auth": None,
    "--mail-from": None,
    "--mail-rcpt": None,
    "--max-filesize": None,
    "-m": None,
    "--max-time": None,
    "--max-redirs": None,
    "--netrc-file": None,
    "--noproxy": None,
    "-u": None,
    "--user": None,
    "-d": None,
    "--data": None,
    "-x": None,
    "--proxy": None,
    "--proxy-basic": AUTH_BASIC,
    "--proxy-digest": AUTH_DIGEST,
    "--proxy-header": None,
    "-U": None,
    "--proxy-user": None,
    "--proxy-cacert": None,
    "--proxy-capath": None,
    "--proxy-crlfile": None,
    "--proxy-pass": None,
    "--proxy-pinnedpubkey": None,
    "--proxy-service-name": None,
    "--proxy-cert": None,
    "--proxy-cert-type": None,
    "--proxy-key": None,
    "--proxy-key-type": None,
    "--proxy-ciphers": None,
    "--proxy-tls13-ciphers": None,
    "--proxy-tlspassword": None,
    "--proxy-tlsauthtype": None,
    "--proxy-tlsuser": None,
    "-Q": None,
    "--quote": None,
    "--random-file": None,
    "-r": None,
    "--range": None,
    "-e": None,
    "--referer": None,
    "--resolve": None,
    "--sasl-authzid": None,
    "--service-name": None,
    "--socks5-gssapi-service": None,
    "--hostpubmd5": None,
    "--hostpubsha256": None,
    "--pubkey": None,
    "-E": None,
    "--cert": None,
    "--cert-type": None,
    "--engine": None,
    "--key": None,
    "--pass": None,
    "--key-type": None,
    "-2": SSLVERSION_SSLV2,
    "--sslv2": SSLVERSION_SSLV2,
    "-3": SSLVERSION_SSLV3,
    "--sslv3": SSLVERSION_SSLV3,
    "--ciphers": None,
    "--curves": None,
    "--stderr": None,
    "--keepalive-time": None,
    "-t": None,
    "--telnet-option": None,
    "--tftp-blksize": None,
    "-z": None,
    "--time-cond": None,
    "--tls13-ciphers": None,
    "--tlspassword": None,
    "--tlsauthtype": None,
    "--tlsuser": None,
    "--unix-socket": None,
    "--url": None,
    "-A": None,
    "--user-agent": None,
    "--oauth2-bearer": None,
    "--ssl-allow-beast": SSLOPT_ALLOW_BEAST,
    "--ssl-auto-client-cert": SSLOPT_AUTO_CLIENT_CERT,
    "--ssl-no-revoke": SSLOPT_NO_REVOKE,
    "--ssl-revoke-best-effort": SSLOPT_REVOKE_BEST_EFFORT,
}


def _as_tuple(value: Union[str, Tuple[str, ...]]) -> Tuple[str, ...]:
    return value if isinstance(value, tuple) else (value,)


def _build_client_options() -> Dict[str, Union[str, Tuple[str, ...]]]:
    flags_by_name: Dict[str, list] = {}
    for flag, names in COMMAND_OPTIONS.items():
        for name in _as_tuple(names):
            flags_by_name.setdefault(name, []).append(flag)
    return {
        name: flags[0] if len(flags) == 1 else tuple(flags)
        for name, flags in flags_by_name.items()
    }


def _build_value_options() -> Dict[str, Any]:
    values = dict(_VALUE_FLAGS)
    for name, flags in _build_client_options().items():
        value_flags = [f for f in _as_tuple(flags) if f in _VALUE_FLAGS]
        if not value_flags:
            continue
        constants = tuple(_VALUE_FLAGS[f] for f in value_flags if _VALUE_FLAGS[f] is not None)
        values[name] = constants or None
    return values


CLIENT_OPTIONS = MappingProxyType(_build_client_options())
VALUE_OPTIONS = MappingProxyType(_build_value_options())

OMIT_OPTIONS = frozenset({
    "CUSTOMREQUEST", "HEADER", "HTTPHEADER", "POST", "POSTFIELDS", "PUT",
    "RETURNTRANSFER", "URL", "SSL_VERIFYHOST", "SSL_VERIFYPEER",
    "-i", "-X", "--request", "-H", "--header", "-d", "--data", "-F", "--form",
    "-k", "--insecure", "--url",
})

UNRESOLVED_OPTIONS = frozenset({
    "ACCEPTTIMEOUT_MS", "ACCEPT_ENCODING", "ADDRESS_SCOPE", "ALTSVC_CTRL",
    "AUTOREFERER", "BUFFERSIZE", "CAINFO_BLOB", "CERTINFO",
    "CONNECTTIMEOUT_MS", "CONNECT_ONLY", "COOKIEFILE", "COOKIELIST",
    "COOKIESESSION", "DEFAULT_PROTOCOL", "DIRLISTONLY", "DNS_CACHE_TIMEOUT",
    "DNS_SHUFFLE_ADDRESSES", "DNS_USE_GLOBAL_CACHE", "EGDSOCKET", "ENCODING",
    "FAILONERROR", "FILETIME", "FNMATCH_FUNCTION", "FOLLOWLOCATION",
    "FORBID_REUSE", "FRESH_CONNECT", "FTPAPPEND", "FTPLISTONLY", "FTPSSLAUTH",
    "FTP_RESPONSE_TIMEOUT", "FTP_SSL", "HEADERFUNCTION", "HEADEROPT",
    "HSTS_CTRL", "HTTP200ALIASES", "HTTPAUTH", "HTTPGET",
    "HTTP_CONTENT_DECODING", "HTTP_TRANSFER_DECODING", "INFILESIZE",
    "IPRESOLVE", "ISSUERCERT", "ISSUERCERT_BLOB", "KEEP_SENDING_ON_ERROR",
    "KEYPASSWD", "KRB4LEVEL", "MAXAGE_CONN", "MAXCONNECTS",
    "MAXFILESIZE_LARGE", "MAX_RECV_SPEED_LARGE", "MAX_SEND_SPEED_LARGE",
    "NEW_DIRECTORY_PERMS", "NEW_FILE_PERMS", "NOBODY", "NOSIGNAL",
    "PATH_AS_IS", "PINNEDPUBLICKEY", "PIPEWAIT", "PORT", "POSTQUOTE",
    "POSTREDIR", "PREQUOTE", "PRE_PROXY", "PRIVATE", "PROGRESSFUNCTION",
    "PROTOCOLS", "PROXYPASSWORD", "PROXYPORT", "PROXYTYPE", "PROXYUSERNAME",
    "PROXY_SSLVERSION", "PROXY_CAINFO_BLOB", "PROXY_ISSUERCERT",
    "PROXY_ISSUERCERT_BLOB", "PROXY_SSLCERT_BLOB", "PROXY_SSLKEY_BLOB",
    "PROXY_SSL_OPTIONS", "PROXY_TRANSFER_MODE", "READDATA", "READFUNCTION",
    "REDIR_PROTOCOLS", "REQUEST_TARGET", "RESUME_FROM", "RETURNTRANSFER",
    "RTSP_CLIENT_CSEQ", "RTSP_REQUEST", "RTSP_SERVER_CSEQ", "RTSP_SESSION_ID",
    "RTSP_STREAM_URI", "RTSP_TRANSPORT", "SHARE", "SSH_AUTH_TYPES",
    "SSH_KNOWNHOSTS", "SSH_PRIVATE_KEYFILE", "SSLCERTPASSWD", "SSLCERT_BLOB",
    "SSLENGINE_DEFAULT", "SSLKEY_BLOB", "STREAM_WEIGHT", "TCP_KEEPIDLE",
    "TCP_KEEPINTVL", "TIMEVALUE", "TIMEVALUE_LARGE", "TRANSFERTEXT",
    "UNRESTRICTED_AUTH", "UPKEEP_INTERVAL_MS", "UPLOAD", "UPLOAD_BUFFERSIZE",
    "WILDCARDMATCH", "WRITEFUNCTION", "WRITEHEADER", "XFERINFOFUNCTION",
})


# =============================================================================
# LOOKUPS
# =============================================================================

def is_valid_option(option: str) -> bool:
    return option in COMMAND_OPTIONS or option in CLIENT_OPTIONS


def is_command_option(option: str) -> bool:
    return option in COMMAND_OPTIONS


def is_client_option(option: str) -> bool:
    return option in CLIENT_OPTIONS


def is_value_option(option: str) -> bool:
    return option in VALUE_OPTIONS


def is_boolean_option(option: str) -> bool:
    return option not in VALUE_OPTIONS


def is_negated_option(option: str) -> bool:
    return option in NEGATED_OPTIONS


def is_omit_option(option: Optional[str]) -> bool:
    return option in OMIT_OPTIONS


def is_unresolved_option(option: str) -> bool:
    return option in UNRESOLVED_OPTIONS


def get_command_option(option: str) -> Union[str, Tuple[str, ...], None]:
    return COMMAND_OPTIONS.get(option)


def get_client_option(option: str) -> Union[str, Tuple[str, ...], None]:
    return CLIENT_OPTIONS.get(option)


def get_value_option(option: str) -> Any:
    return VALUE_OPTIONS.get(option)


def get_flag_for_value(name: str, value: Any) -> Optional[str]:
    """
    The flag that implies ``value`` for option ``name``, if any.

        >>> get_flag_for_value("HTTP_VERSION", HTTP_VERSION_2_0)
        '--http2'
    """
    flags = CLIENT_OPTIONS.get(name)
    if flags is None:
        return None
    for flag in _as_tuple(flags):
        constant = _VALUE_FLAGS.get(flag)
        if constant is not None and constant == value:
            return flag
    return None
