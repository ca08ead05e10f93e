from peekread.peeker import (
    PeekCursor,
    PeekRead,
    PeekError,
    PeekActiveError,
    RestoreError,
    read_up_to,
)
from peekread.seekreader import SeekPeekReader
from peekread.bufreader import BufPeekReader
from peekread.peekread import (
    main,
    wrap,
    sniff,
    DEFAULT_SIGNATURES,
)
