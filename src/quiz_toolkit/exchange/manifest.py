"""
Module: exchange.manifest

Purpose:
    Package manifest: lists, per quiz, the item document resource and its
    metadata dependency, plus one web-content resource per asset.

Key Functions:
    - build_manifest(): Quiz entries + assets -> manifest XML
    - parse_manifest(): Manifest XML -> ManifestInfo
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
from xml.etree.ElementTree import Element, SubElement

from quiz_toolkit.core.models.package import ImportedAsset
from quiz_toolkit.exchange.xmltools import parse_xml, to_pretty_xml

logger = logging.getLogger(__name__)

MANIFEST_NAMESPACE = "http://www.imsglobal.org/xsd/imsccv1p1/imscp_v1p1"

QTI_RESOURCE_TYPE = "imsqti_xmlv1p2"
META_RESOURCE_TYPE = "associatedcontent/imscc_xmlv1p1/learning-application-resource"
WEBCONTENT_RESOURCE_TYPE = "webcontent"

META_SUFFIX = "meta"


@dataclass(frozen=True)
class QuizResource:
    """A quiz listed in the manifest."""
    identifier: str
    qti_path: str
    meta_path: Optional[str] = None


@dataclass(frozen=True)
class ManifestInfo:
    """Quiz resources in manifest order, plus web-content hrefs."""
    quiz_resources: List[QuizResource] = field(default_factory=list)
    web_resources: List[str] = field(default_factory=list)


def build_manifest(quizzes: Sequence[QuizResource], assets: Sequence[ImportedAsset]) -> str:
    """Manifest XML listing every quiz, its metadata, and every asset."""
    manifest = Element("manifest", xmlns=MANIFEST_NAMESPACE, identifier="manifest")
    resources = SubElement(manifest, "resources")

    for quiz in quizzes:
        meta_ident = f"{quiz.identifier}{META_SUFFIX}"
        res = SubElement(
            resources, "resource",
            identifier=quiz.identifier, type=QTI_RESOURCE_TYPE, href=quiz.qti_path,
        )
        SubElement(res, "file", href=quiz.qti_path)
        SubElement(res, "dependency", identifierref=meta_ident)

        if quiz.meta_path:
            meta = SubElement(
                resources, "resource",
                identifier=meta_ident, type=META_RESOURCE_TYPE, href=quiz.meta_path,
            )
            SubElement(meta, "file", href=quiz.meta_path)

    for index, asset in enumerate(assets, start=1):
        res = SubElement(
            resources, "resource",
            identifier=f"webcontent_{index}", type=WEBCONTENT_RESOURCE_TYPE, href=asset.zip_path,
        )
        SubElement(res, "file", href=asset.zip_path)

    return to_pretty_xml(manifest)


def _resource_href(resource: Element) -> Optional[str]:
    file_el = resource.find("file")
    if file_el is not None and file_el.get("href"):
        return file_el.get("href")
    return resource.get("href")


def parse_manifest(xml: bytes | str) -> ManifestInfo:
    """
    Resolve the quiz resources of a manifest.

    A quiz resource's metadata path comes from its first dependency, looked
    up among the metadata resources. Resources without an identifier or
    href are skipped.

    Raises:
        xml.etree.ElementTree.ParseError: If the document is not well-formed
    """
    root = parse_xml(xml)
    resources = root.findall(".//resources/resource")

    meta_by_id: Dict[str, str] = {}
    web_resources: List[str] = []
    for res in resources:
        res_type = res.get("type")
        identifier = res.get("identifier")
        href = _resource_href(res)
        if res_type == META_RESOURCE_TYPE and identifier and href:
            meta_by_id[identifier] = href
        elif res_type == WEBCONTENT_RESOURCE_TYPE and href:
            web_resources.append(href)

    quiz_resources: List[QuizResource] = []
    for res in resources:
        if res.get("type") != QTI_RESOURCE_TYPE:
            continue
        identifier = res.get("identifier")
        file_el = res.find("file")
        qti_path = file_el.get("href") if file_el is not None else None
        if not identifier or not qti_path:
            logger.debug(f"Skipping incomplete quiz resource {identifier!r}")
            continue
        dependency = res.find("dependency")
        meta_ref = dependency.get("identifierref") if dependency is not None else None
        quiz_resources.append(
            QuizResource(identifier, qti_path, meta_by_id.get(meta_ref) if meta_ref else None)
        )

    return ManifestInfo(quiz_resources, web_resources)
