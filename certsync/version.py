# Initialize version as unknown
version = "?"

try:
    from importlib.metadata import PackageNotFoundError
    from importlib.metadata import version as get_version

    version = get_version("certsync")
except PackageNotFoundError:
    print(
        "Cannot determine certsync version. "
        'If running from source you should at least run "pip install -e ."'
    )

BANNER = "certsync v{} - certificate template reconciliation\n".format(version)
