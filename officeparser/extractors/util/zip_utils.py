import zipfile
from xml.etree import ElementTree as ET


def read_zip_bytes(zf: zipfile.ZipFile, path: str) -> bytes:
    with zf.open(path) as handle:
        return handle.read()


def read_zip_text(zf: zipfile.ZipFile, path: str, encoding: str = "utf-8") -> str:
    return read_zip_bytes(zf, path).decode(encoding, errors="replace")


def read_zip_xml_root(zf: zipfile.ZipFile, path: str) -> ET.Element:
    with zf.open(path) as handle:
        return ET.parse(handle).getroot()
