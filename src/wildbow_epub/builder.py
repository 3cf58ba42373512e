from __future__ import annotations

import datetime as _dt
import os
import uuid
import xml.sax.saxutils as xsu
import zipfile
from dataclasses import dataclass
from typing import BinaryIO, Dict, List, Optional, Union
from urllib.parse import quote

from .exceptions import AssemblyError
from .utils import collapse_whitespace, long_date, short_date

# OPF 2.0 guide vocabulary
REFTYPES = {
    "cover", "title-page", "toc", "index", "glossary", "acknowledgements",
    "bibliography", "colophon", "copyright-page", "dedication", "epigraph",
    "foreword", "loi", "lot", "notes", "preface", "text",
}
META_KEYS = {"title", "author", "description", "generator", "lang", "subject", "license"}

CSS = (
    "body { margin: 0; padding: 1rem; font-family: serif; line-height: 1.6; }\n"
    "h1, h2, h3 { text-align: center; }\n"
    "p { margin: 0 0 .8rem 0; text-align: justify; }\n"
    "#toc ol { list-style: none; padding: 0; }\n"
)


def build_xhtml(title: str, body_html: str, lang: str = "en") -> str:
    """Minimal XHTML document around a body fragment."""
    title_xml = xsu.escape(title)
    return (
        "<?xml version=\"1.0\" encoding=\"utf-8\"?>\n"
        "<html xmlns=\"http://www.w3.org/1999/xhtml\" xml:lang=\"%s\" lang=\"%s\">\n"
        "<head>\n"
        "  <meta http-equiv=\"Content-Type\" content=\"text/html; charset=utf-8\"/>\n"
        "  <title>%s</title>\n"
        "  <link rel=\"stylesheet\" type=\"text/css\" href=\"stylesheet.css\"/>\n"
        "</head>\n"
        "<body>\n"
        "%s\n"
        "</body>\n"
        "</html>\n"
    ) % (lang, lang, title_xml, body_html)


def _is_document(text: str) -> bool:
    head = text.lstrip()[:200].lower()
    return head.startswith(("<?xml", "<!doctype", "<html"))


def chapter_filename(title: str) -> str:
    """Content document name for a chapter: whitespace runs become '_'."""
    name = collapse_whitespace(title, "_").replace("/", "-").replace("\\", "-")
    return f"{name}.xhtml" if name else ""


def output_filename(root: str, today: _dt.date) -> str:
    """'{host}{%e%b%y}.epub', e.g. 'www.parahumans.net 5Jan25.epub'."""
    host = root.split("//", 1)[1] if "//" in root else root
    host = host.strip("/").replace("/", "_")
    return f"{host}{short_date(today)}.epub"


@dataclass
class EpubContent:
    name: str
    data: bytes
    title: Optional[str] = None
    reftype: Optional[str] = None


class EpubBuilder:
    """In-memory EPUB 2.0.1 book, written out by generate()."""

    def __init__(self):
        self.meta: Dict[str, str] = {"lang": "en"}
        self.contents: List[EpubContent] = []
        self.identifier = f"urn:uuid:{uuid.uuid4()}"
        self.date = _dt.datetime.now(_dt.timezone.utc)
        self.toc_title: Optional[str] = None

    def metadata(self, key: str, value: str) -> "EpubBuilder":
        if key not in META_KEYS:
            raise AssemblyError(f"Unknown metadata key: {key}")
        self.meta[key] = value
        return self

    def add_content(
        self,
        name: str,
        data: bytes,
        *,
        title: Optional[str] = None,
        reftype: Optional[str] = None,
    ) -> "EpubBuilder":
        if not name:
            raise AssemblyError("Content name must not be empty")
        if name == "toc.xhtml" or any(c.name == name for c in self.contents):
            raise AssemblyError(f"Duplicate content name: {name}")
        if reftype is not None and reftype not in REFTYPES:
            raise AssemblyError(f"Unknown reference type: {reftype}")
        self.contents.append(EpubContent(name=name, data=data, title=title, reftype=reftype))
        return self

    def inline_toc(self, title: str = "Table Of Contents") -> "EpubBuilder":
        self.toc_title = title
        return self

    # -- rendering --

    def _document(self, item: EpubContent) -> bytes:
        text = item.data.decode("utf-8")
        if _is_document(text):
            return item.data
        if not text.lstrip().startswith("<"):
            # plain text such as an error message
            text = f"<p>{xsu.escape(text)}</p>"
        return build_xhtml(item.title or "", text, self.meta["lang"]).encode("utf-8")

    def _spine(self) -> List[EpubContent]:
        spine = list(self.contents)
        if self.toc_title is None:
            return spine
        pos = 0
        for i, c in enumerate(spine):
            if c.reftype in ("cover", "title-page"):
                pos = i + 1
        entries = "\n".join(
            f"  <li><a href=\"{xsu.escape(quote(c.name))}\">{xsu.escape(c.title)}</a></li>"
            for c in spine
            if c.title
        )
        body = (
            f"<h1>{xsu.escape(self.toc_title)}</h1>\n"
            f"<div id=\"toc\">\n<ol>\n{entries}\n</ol>\n</div>"
        )
        toc = EpubContent(
            name="toc.xhtml",
            data=build_xhtml(self.toc_title, body, self.meta["lang"]).encode("utf-8"),
            title=self.toc_title,
            reftype="toc",
        )
        spine.insert(pos, toc)
        return spine

    def _opf(self, spine: List[EpubContent]) -> str:
        m = self.meta
        optional = ""
        if "author" in m:
            optional += f"    <dc:creator opf:role=\"aut\">{xsu.escape(m['author'])}</dc:creator>\n"
        if "description" in m:
            optional += f"    <dc:description>{xsu.escape(m['description'])}</dc:description>\n"
        if "subject" in m:
            optional += f"    <dc:subject>{xsu.escape(m['subject'])}</dc:subject>\n"
        if "license" in m:
            optional += f"    <dc:rights>{xsu.escape(m['license'])}</dc:rights>\n"
        if "generator" in m:
            optional += f"    <meta name=\"generator\" content=\"{xsu.escape(m['generator'])}\"/>\n"

        manifest = []
        itemrefs = []
        guide = []
        for idx, c in enumerate(spine, 1):
            href = xsu.escape(quote(c.name))
            manifest.append(
                f"    <item id=\"content_{idx}\" href=\"{href}\" media-type=\"application/xhtml+xml\"/>"
            )
            itemrefs.append(f"    <itemref idref=\"content_{idx}\"/>")
            if c.reftype:
                guide.append(
                    f"    <reference type=\"{c.reftype}\" title=\"{xsu.escape(c.title or c.name)}\" href=\"{href}\"/>"
                )

        return (
            "<?xml version=\"1.0\" encoding=\"utf-8\"?>\n"
            "<package xmlns=\"http://www.idpf.org/2007/opf\" version=\"2.0\" unique-identifier=\"book-id\">\n"
            "  <metadata xmlns:dc=\"http://purl.org/dc/elements/1.1/\" xmlns:opf=\"http://www.idpf.org/2007/opf\">\n"
            "    <dc:identifier id=\"book-id\">%s</dc:identifier>\n"
            "    <dc:title>%s</dc:title>\n"
            "    <dc:language>%s</dc:language>\n"
            "    <dc:date>%s</dc:date>\n"
            "%s"
            "  </metadata>\n"
            "  <manifest>\n"
            "    <item id=\"ncx\" href=\"toc.ncx\" media-type=\"application/x-dtbncx+xml\"/>\n"
            "    <item id=\"css\" href=\"stylesheet.css\" media-type=\"text/css\"/>\n"
            "%s\n"
            "  </manifest>\n"
            "  <spine toc=\"ncx\">\n"
            "%s\n"
            "  </spine>\n"
            "  <guide>\n"
            "%s\n"
            "  </guide>\n"
            "</package>\n"
        ) % (
            xsu.escape(self.identifier),
            xsu.escape(m.get("title", "Untitled")),
            xsu.escape(m["lang"]),
            self.date.strftime("%Y-%m-%d"),
            optional,
            "\n".join(manifest),
            "\n".join(itemrefs),
            "\n".join(guide),
        )

    def _ncx(self, spine: List[EpubContent]) -> str:
        navpoints = []
        order = 0
        for c in spine:
            if not c.title:
                continue
            order += 1
            navpoints.append(
                f"    <navPoint id=\"navPoint-{order}\" playOrder=\"{order}\">\n"
                f"      <navLabel><text>{xsu.escape(c.title)}</text></navLabel>\n"
                f"      <content src=\"{xsu.escape(quote(c.name))}\"/>\n"
                f"    </navPoint>"
            )
        return (
            "<?xml version=\"1.0\" encoding=\"utf-8\"?>\n"
            "<ncx xmlns=\"http://www.daisy.org/z3986/2005/ncx/\" version=\"2005-1\">\n"
            "  <head>\n"
            "    <meta name=\"dtb:uid\" content=\"%s\"/>\n"
            "    <meta name=\"dtb:depth\" content=\"1\"/>\n"
            "    <meta name=\"dtb:totalPageCount\" content=\"0\"/>\n"
            "    <meta name=\"dtb:maxPageNumber\" content=\"0\"/>\n"
            "  </head>\n"
            "  <docTitle><text>%s</text></docTitle>\n"
            "  <navMap>\n"
            "%s\n"
            "  </navMap>\n"
            "</ncx>\n"
        ) % (
            xsu.escape(self.identifier),
            xsu.escape(self.meta.get("title", "Untitled")),
            "\n".join(navpoints),
        )

    def generate(self, target: Union[str, "os.PathLike[str]", BinaryIO]) -> None:
        """Write the EPUB container to a path or binary file object.

        OSError from the target propagates; anything else is an AssemblyError.
        """
        container_xml = (
            "<?xml version=\"1.0\" encoding=\"UTF-8\"?>\n"
            "<container version=\"1.0\" xmlns=\"urn:oasis:names:tc:opendocument:xmlns:container\">\n"
            "  <rootfiles>\n"
            "    <rootfile full-path=\"OEBPS/content.opf\" media-type=\"application/oebps-package+xml\"/>\n"
            "  </rootfiles>\n"
            "</container>\n"
        ).encode("utf-8")
        try:
            spine = self._spine()
            documents = [(c.name, self._document(c)) for c in spine]
            content_opf = self._opf(spine)
            toc_ncx = self._ncx(spine)
        except (UnicodeDecodeError, TypeError) as e:
            raise AssemblyError(f"epub generation failed: {e}") from e

        try:
            with zipfile.ZipFile(target, "w", zipfile.ZIP_DEFLATED) as zf:
                zi = zipfile.ZipInfo("mimetype")
                zi.compress_type = zipfile.ZIP_STORED
                zf.writestr(zi, b"application/epub+zip")
                zf.writestr("META-INF/container.xml", container_xml)
                zf.writestr("OEBPS/content.opf", content_opf.encode("utf-8"))
                zf.writestr("OEBPS/toc.ncx", toc_ncx.encode("utf-8"))
                zf.writestr("OEBPS/stylesheet.css", CSS.encode("utf-8"))
                for name, data in documents:
                    zf.writestr(f"OEBPS/{name}", data)
        except (zipfile.BadZipFile, ValueError) as e:
            raise AssemblyError(f"epub generation failed: {e}") from e


def title_page(root: str, today: _dt.date) -> str:
    return (
        f"<h1>This file was auto-generated from {xsu.escape(root)} on {long_date(today)}</h1>"
        "<p>The contents of this book are the property of Wildbow/J.C. McCrae. "
        "This book was created for convenient offline reading. "
        "Please refrain from printing, distributing, or selling this file.</p>"
        "<p><em>Be warned: Text may be missing or have errors.</em></p>"
    )
