from setuptools import setup

with open("README.md") as f:
    readme = f.read()

_ = setup(
    name="certsync",
    version="1.0.0",
    license="MIT",
    long_description=readme,
    long_description_content_type="text/markdown",
    install_requires=[
        "asn1crypto~=1.5.1",
        "ldap3~=2.9.1",
        "argcomplete~=3.6.0",
    ],
    extras_require={
        "test": ["pytest~=8.3.0"],
    },
    packages=[
        "certsync",
        "certsync.commands",
        "certsync.commands.parsers",
        "certsync.lib",
    ],
    entry_points={
        "console_scripts": ["certsync=certsync.entry:main"],
    },
    description="Active Directory certificate template reconciliation and enrollment policy export",
)
