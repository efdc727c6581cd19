"""
Enrollment Policy Export Module.

This module reads certificate templates from Active Directory and writes them
as an enrollment policy (GetPoliciesResponse) document that an enrollment
client can import.
"""

import argparse
from typing import List, Optional

from certsync.lib.attributes import decode_entry
from certsync.lib.errors import MissingInputError
from certsync.lib.files import try_to_save_file
from certsync.lib.ldap import LDAPConnection
from certsync.lib.logger import logging
from certsync.lib.model import CertificateTemplate
from certsync.lib.oid import OIDRegistry
from certsync.lib.target import Target
from certsync.xcep import PolicyDocument, build_get_policies_response


class Export:
    """
    Exports certificate templates as an enrollment policy document.
    """

    def __init__(
        self,
        target: Target,
        template: Optional[List[str]] = None,
        output: Optional[str] = None,
        policy_id: str = "",
        connection: Optional[LDAPConnection] = None,
        **kwargs,  # type: ignore
    ):
        """
        Args:
            target: Target domain information
            template: Names of the certificate templates to export, in order
            output: Output file path (default: policy.xml)
            policy_id: Identifier written to the policyID element
            connection: Optional existing LDAP connection to reuse
        """
        self.target = target
        self.template_names = template or []
        self.output = output or "policy.xml"
        self.policy_id = policy_id
        self.kwargs = kwargs

        self._connection = connection

    @property
    def connection(self) -> LDAPConnection:
        if self._connection is not None:
            return self._connection

        self._connection = LDAPConnection(self.target)
        self._connection.connect()

        return self._connection

    def get_templates(self) -> List[CertificateTemplate]:
        """
        Load the requested templates from the directory, in the order given.

        Raises:
            NotFoundError: If a template does not exist
        """
        templates = []
        for name in self.template_names:
            configuration = self.connection.get_certificate_template(name)
            templates.append(
                CertificateTemplate.from_attributes(
                    decode_entry(configuration.attributes)
                )
            )
            logging.debug(f"Loaded certificate template {name!r}")
        return templates

    def build(self) -> PolicyDocument:
        """
        Build the policy document with a registry owned by this export.

        Raises:
            MissingInputError: If no templates were requested
        """
        if not self.template_names:
            raise MissingInputError("At least one template (-template) is required")

        return build_get_policies_response(
            self.get_templates(), registry=OIDRegistry(), policy_id=self.policy_id
        )

    def export(self) -> str:
        """
        Build the document and write it to the output file.

        Returns:
            Path the document was written to
        """
        document = self.build()

        out_file = try_to_save_file(document.to_xml(), self.output, abort_on_fail=True)
        logging.info(
            f"Wrote enrollment policy for {len(self.template_names)} template(s) "
            f"with {len(document.registry)} OID(s) to {out_file!r}"
        )
        return out_file


def entry(options: argparse.Namespace) -> None:
    """
    Entry point for the export command.
    """
    target = Target.from_options(options)

    Export(target=target, **vars(options)).export()
