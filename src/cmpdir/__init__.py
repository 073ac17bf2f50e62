from .tree import CmpResult, Classification, DirectoryNode, FileEntry
from .failures import FailureKind, ScanFailure
from .gateway import FileSystemGateway
from .checksum import compute_crc32
from .scanner import ScanEngine, ScanResult
from .index import FileIndex
from .comparator import ComparisonResult, compare, compare_trees
from .pairs import FilePair, PairOutcome, compare_file_pair, compare_file_pairs, load_file_pairs
from .progress import ProgressSnapshot, ScanPhase
from .settings import Settings
from .utils.processor import Processor
