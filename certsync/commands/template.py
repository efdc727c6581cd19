"""
Certificate Template Reconciliation Module.

This module reads a certificate template from Active Directory, compares it
with a desired configuration stored as JSON, and applies the minimal set of
attribute writes that brings the template to the desired state.
"""

import argparse
from typing import Any, Mapping, Optional

from ldap3.core.results import RESULT_INSUFFICIENT_ACCESS_RIGHTS, RESULT_SUCCESS

from certsync.diff import diff
from certsync.lib.attributes import (
    AttributeMap,
    decode_entry,
    encode_document,
    load_document,
    project_attributes,
)
from certsync.lib.constants import FLAG_ATTRIBUTES
from certsync.lib.errors import MissingInputError
from certsync.lib.files import try_to_save_file
from certsync.lib.formatting import format_value
from certsync.lib.ldap import LDAPConnection, LDAPEntry
from certsync.lib.logger import logging
from certsync.lib.target import Target
from certsync.reconcile import ChangeSet, reconcile, to_modifications

# Attributes maintained by the directory itself
READ_ONLY_ATTRIBUTES = [
    "objectClass",
    "cn",
    "name",
    "distinguishedName",
    "objectGUID",
    "objectCategory",
    "instanceType",
    "whenCreated",
    "whenChanged",
    "uSNCreated",
    "uSNChanged",
    "dSCorePropagationData",
    "msPKI-Cert-Template-OID",
]

_READ_ONLY = {name.lower() for name in READ_ONLY_ATTRIBUTES}


def writable_attributes(attributes: Mapping[str, Any]) -> AttributeMap:
    """Drop the attributes the directory maintains itself."""
    return {
        key: value for key, value in attributes.items() if key.lower() not in _READ_ONLY
    }


def compute_changes(
    current: Mapping[str, Any], desired: Mapping[str, Any]
) -> ChangeSet:
    """
    Compute the attribute writes needed to move a template to its desired state.

    Args:
        current: Projected attribute map of the live template
        desired: Decoded desired attribute map

    Returns:
        ChangeSet of attributes to replace and to clear

    Raises:
        TypeCoercionError: If a desired value does not fit its attribute
    """
    return reconcile(diff(writable_attributes(current), writable_attributes(desired)))


def _describe(key: str, value: Any) -> str:
    flag = FLAG_ATTRIBUTES.get(key)
    if flag is not None and isinstance(value, int):
        names = str(flag(value & 0xFFFFFFFF))
        if names:
            return f"{value} ({names})"
    return format_value(value)


class Template:
    """
    Certificate template reconciliation against a desired configuration.
    """

    def __init__(
        self,
        target: Target,
        template: str = "",
        desired: Optional[str] = None,
        save_configuration: Optional[str] = None,
        dry_run: bool = False,
        force: bool = False,
        connection: Optional[LDAPConnection] = None,
        **kwargs,  # type: ignore
    ):
        """
        Args:
            target: Target domain information
            template: Name of the certificate template to operate on
            desired: Path of the desired configuration JSON file
            save_configuration: Path to save the current configuration to
            dry_run: Only show the changes, do not write them
            force: Apply changes without asking
            connection: Already bound connection, used instead of connecting
            **kwargs: Remaining command line options
        """
        self.target = target
        self.template_name = template
        self.desired_file = desired
        self.save_configuration_file = save_configuration
        self.dry_run = dry_run
        self.force = force
        self.kwargs = kwargs

        self._connection = connection

    @property
    def connection(self) -> LDAPConnection:
        """
        LDAP connection, bound on first use.
        """
        if self._connection is not None:
            return self._connection

        self._connection = LDAPConnection(self.target)
        self._connection.connect()

        return self._connection

    def get_configuration(self) -> LDAPEntry:
        """
        Retrieve the certificate template from the directory.

        Raises:
            NotFoundError: If the template does not exist
        """
        return self.connection.get_certificate_template(self.template_name)

    def current_attributes(self, configuration: LDAPEntry) -> AttributeMap:
        """
        Decode the reconciled attributes of a template entry.
        """
        return decode_entry(project_attributes(configuration.attributes))

    def save_configuration(self, configuration: Optional[LDAPEntry] = None) -> str:
        """
        Write the writable attributes of the template as a desired-state document.

        Returns:
            Path the configuration was written to
        """
        if configuration is None:
            configuration = self.get_configuration()

        attributes = writable_attributes(self.current_attributes(configuration))

        out_file = (
            self.save_configuration_file.removesuffix(".json")
            if self.save_configuration_file
            else configuration.get("cn")
        )
        out_file = f"{out_file}.json"

        out_file = try_to_save_file(
            encode_document(attributes), out_file, abort_on_fail=True
        )
        logging.info(
            f"Wrote current configuration for {self.template_name!r} to {out_file!r}"
        )
        return out_file

    def write_configuration(self) -> bool:
        """
        Reconcile the template with the desired configuration file.

        Returns:
            True if changes were written, False otherwise

        Raises:
            MissingInputError: If no template or desired configuration is given
            NotFoundError: If the template does not exist
            TypeCoercionError: If the desired configuration is invalid
        """
        if not self.template_name:
            raise MissingInputError("A template (-template) is required")
        if not self.desired_file:
            raise MissingInputError("A desired configuration (-desired) is required")

        desired = load_document(self.desired_file)

        configuration = self.get_configuration()
        current = self.current_attributes(configuration)

        change_set = compute_changes(current, desired)

        if not change_set:
            logging.info(
                f"Certificate template {self.template_name!r} is already in the desired state"
            )
            return False

        self._log_changes(change_set)

        if self.dry_run:
            logging.info("Dry run, not applying changes")
            return False

        return self._apply_changes(configuration, change_set)

    def _apply_changes(self, configuration: LDAPEntry, change_set: ChangeSet) -> bool:
        """
        Write a change set: replaced attributes first, then cleared ones.
        """
        template_name = configuration.get("cn")

        if not self.force:
            confirm = input(
                f"Apply {len(change_set)} change(s) to {template_name!r}? (y/N): "
            )
            if confirm.strip().lower() != "y":
                logging.info("Not applying changes")
                return False

        logging.info(f"Reconciling certificate template {template_name!r}")

        for changes in to_modifications(change_set):
            result = self.connection.modify(configuration["dn"], changes)

            if result["result"] == RESULT_SUCCESS:
                continue

            if result["result"] == RESULT_INSUFFICIENT_ACCESS_RIGHTS:
                logging.error(
                    f"Insufficient rights for {self.target.username!r} to modify "
                    f"{template_name!r}, stopping"
                )
            else:
                logging.error(f"Modify of {template_name!r} failed: {result['message']}")
            return False

        logging.info(f"Certificate template {template_name!r} is now in the desired state")
        return True

    def _log_changes(self, change_set: ChangeSet) -> None:
        if change_set.replace:
            logging.info("Replacing:")
            for key, value in change_set.replace.items():
                logging.info(f"    {key}: {_describe(key, value)}")

        if change_set.clear:
            logging.info("Clearing:")
            for key in change_set.clear:
                logging.info(f"    {key}")


def entry(options: argparse.Namespace) -> None:
    """
    Save and/or reconcile a template, as requested on the command line.
    """
    target = Target.from_options(options)

    template = Template(target=target, **vars(options))

    if template.save_configuration_file:
        template.save_configuration()

    if template.desired_file:
        template.write_configuration()
