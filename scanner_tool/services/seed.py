"""Mock scanners present at startup and the pool that discovery draws from."""

from ..models.scanner import ScannerCapabilities, ScannerSpec, ScannerType, SystemType


def _spec(
    name: str,
    scanner_type: ScannerType,
    system_type: SystemType,
    max_resolution: int,
    duplex: bool,
    adf: bool,
) -> ScannerSpec:
    return ScannerSpec(
        name=name,
        scanner_type=scanner_type,
        system_type=system_type,
        capabilities=ScannerCapabilities(
            max_resolution=max_resolution,
            has_duplex=duplex,
            has_adf=adf,
        ),
    )


SEED_SCANNERS = [
    _spec("HP ScanJet Pro 2500 f1", ScannerType.DOCUMENT_FEEDER, SystemType.WINDOWS, 1200, True, True),
    _spec("Canon CanoScan LiDE 400", ScannerType.FLATBED, SystemType.WINDOWS, 4800, False, False),
    _spec("Epson Perfection V850 Pro", ScannerType.PHOTO_SCANNER, SystemType.MACOS, 6400, False, False),
    _spec("Brother MFC-L3770CDW", ScannerType.DOCUMENT_FEEDER, SystemType.MACOS, 1200, True, True),
    _spec("HP LaserJet MFP M28w", ScannerType.FLATBED, SystemType.LINUX, 1200, False, False),
    _spec("SANE Generic Scanner", ScannerType.DOCUMENT_FEEDER, SystemType.LINUX, 600, True, True),
]

DISCOVERABLE_SCANNERS = {
    SystemType.WINDOWS: [
        _spec("Fujitsu fi-7160", ScannerType.SHEET_FED, SystemType.WINDOWS, 600, True, True),
        _spec("Plustek OpticFilm 8200i", ScannerType.FILM_SCANNER, SystemType.WINDOWS, 7200, False, False),
        _spec("Doxie Go SE", ScannerType.HANDHELD, SystemType.WINDOWS, 600, False, False),
    ],
    SystemType.MACOS: [
        _spec("Fujitsu ScanSnap iX1600", ScannerType.SHEET_FED, SystemType.MACOS, 600, True, True),
        _spec("Epson FastFoto FF-680W", ScannerType.PHOTO_SCANNER, SystemType.MACOS, 1200, True, True),
        _spec("IRIScan Book 5", ScannerType.HANDHELD, SystemType.MACOS, 1200, False, False),
    ],
    SystemType.LINUX: [
        _spec("Brother ADS-1700W", ScannerType.SHEET_FED, SystemType.LINUX, 600, True, True),
        _spec("Canon imageFORMULA R40", ScannerType.DOCUMENT_FEEDER, SystemType.LINUX, 600, True, True),
        _spec("Reflecta ProScan 10T", ScannerType.FILM_SCANNER, SystemType.LINUX, 5000, False, False),
    ],
}
