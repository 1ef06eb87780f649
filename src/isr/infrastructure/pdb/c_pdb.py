from enum import IntEnum

from dissect.cstruct import cstruct

# https://llvm.org/docs/PDB/index.html
# https://github.com/microsoft/microsoft-pdb/blob/master/include/cvinfo.h
pdb_def = """
/////////////////////////////////////////////////////////////////////////
// MSF container
/////////////////////////////////////////////////////////////////////////
struct MSF_SUPERBLOCK {
    char    magic[32];
    uint32  block_size;
    uint32  free_block_map_block;
    uint32  num_blocks;
    uint32  num_directory_bytes;
    uint32  unknown;
    uint32  block_map_addr;
};

/////////////////////////////////////////////////////////////////////////
// TPI stream
/////////////////////////////////////////////////////////////////////////
struct TPI_HEADER {
    uint32  version;
    uint32  header_size;
    uint32  ti_min;
    uint32  ti_max;
    uint32  gprec_size;
    uint16  hash_stream;
    uint16  hash_aux_stream;
    uint32  hash_key_size;
    uint32  hash_buckets;
    int32   hash_values_offset;
    uint32  hash_values_size;
    int32   ti_offset_offset;
    uint32  ti_offset_size;
    int32   hash_adj_offset;
    uint32  hash_adj_size;
};

struct RECORD_HEADER {
    uint16  length;             // excludes the length field itself
    uint16  kind;
};

// Fixed prefixes of type records; numeric leaves and names follow
struct LF_MODIFIER_T {
    uint32  type;
    uint16  attributes;
};

struct LF_POINTER_T {
    uint32  utype;
    uint32  attributes;
};

struct LF_PROCEDURE_T {
    uint32  rvtype;
    uint8   calltype;
    uint8   funcattr;
    uint16  parmcount;
    uint32  arglist;
};

struct LF_MFUNCTION_T {
    uint32  rvtype;
    uint32  classtype;
    uint32  thistype;
    uint8   calltype;
    uint8   funcattr;
    uint16  parmcount;
    uint32  arglist;
    int32   thisadjust;
};

struct LF_BITFIELD_T {
    uint32  type;
    uint8   length;
    uint8   position;
};

struct LF_ARRAY_T {
    uint32  elemtype;
    uint32  idxtype;
};

struct LF_CLASS_T {
    uint16  count;
    uint16  property;
    uint32  field;
    uint32  derived;
    uint32  vshape;
};

struct LF_UNION_T {
    uint16  count;
    uint16  property;
    uint32  field;
};

struct LF_ENUM_T {
    uint16  count;
    uint16  property;
    uint32  utype;
    uint32  field;
};

// Field list sub-records
struct LF_MEMBER_T {
    uint16  attributes;
    uint32  index;
};

struct LF_ENUMERATE_T {
    uint16  attributes;
};

struct LF_VBCLASS_T {
    uint16  attributes;
    uint32  index;
    uint32  vbptr;
};

struct LF_INDEX_T {
    uint16  pad;
    uint32  index;
};

struct LF_VFUNCOFF_T {
    uint16  pad;
    uint32  index;
    uint32  offset;
};

struct LF_METHOD_T {
    uint16  count;
    uint32  mlist;
};

/////////////////////////////////////////////////////////////////////////
// DBI stream
/////////////////////////////////////////////////////////////////////////
struct DBI_HEADER {
    int32   version_signature;
    uint32  version_header;
    uint32  age;
    uint16  global_stream_index;
    uint16  build_number;
    uint16  public_stream_index;
    uint16  pdb_dll_version;
    uint16  sym_record_stream;
    uint16  pdb_dll_rbld;
    int32   mod_info_size;
    int32   section_contribution_size;
    int32   section_map_size;
    int32   source_info_size;
    int32   type_server_map_size;
    uint32  mfc_type_server_index;
    int32   optional_dbg_header_size;
    int32   ec_substream_size;
    uint16  flags;
    uint16  machine;
    uint32  padding;
};

struct IMAGE_SECTION_HEADER {
    char    name[8];
    uint32  virtual_size;
    uint32  virtual_address;
    uint32  size_of_raw_data;
    uint32  pointer_to_raw_data;
    uint32  pointer_to_relocations;
    uint32  pointer_to_linenumbers;
    uint16  number_of_relocations;
    uint16  number_of_linenumbers;
    uint32  characteristics;
};

struct OMAP_ENTRY {
    uint32  source;
    uint32  target;
};

struct PUBSYM32 {
    uint32  flags;
    uint32  offset;
    uint16  segment;
};
"""

c_pdb = cstruct().load(pdb_def)

PDB7_SIGNATURE = b"Microsoft C/C++ MSF 7.00\r\n\x1aDS\x00\x00\x00"

# Fixed stream indices
PDB_STREAM = 1
TPI_STREAM = 2
DBI_STREAM = 3

NIL_STREAM = 0xFFFF
DBI_HEADER_SIZE = 64

# First non-primitive type index
TI_MIN = 0x1000

# Order of stream indices in the DBI optional debug header
DEBUG_HEADER_STREAMS = (
    "fpo",
    "exception",
    "fixup",
    "omap_to_src",
    "omap_from_src",
    "section_header",
    "token_rid_map",
    "xdata",
    "pdata",
    "new_fpo",
    "section_header_orig",
)

S_PUB32 = 0x110E

# CV_prop_t bits
PROPERTY_FWDREF = 0x0080
PROPERTY_HAS_UNIQUE_NAME = 0x0200

# CV_fldattr_t method property values that carry a vtable offset
MPROP_INTRO = 4
MPROP_PURE_INTRO = 6


class LeafType(IntEnum):
    LF_MODIFIER = 0x1001
    LF_POINTER = 0x1002
    LF_PROCEDURE = 0x1008
    LF_MFUNCTION = 0x1009
    LF_ARGLIST = 0x1201
    LF_FIELDLIST = 0x1203
    LF_BITFIELD = 0x1205
    LF_METHODLIST = 0x1206
    LF_BCLASS = 0x1400
    LF_VBCLASS = 0x1401
    LF_IVBCLASS = 0x1402
    LF_INDEX = 0x1404
    LF_VFUNCTAB = 0x1409
    LF_VFUNCOFF = 0x140C
    LF_ENUMERATE = 0x1502
    LF_ARRAY = 0x1503
    LF_CLASS = 0x1504
    LF_STRUCTURE = 0x1505
    LF_UNION = 0x1506
    LF_ENUM = 0x1507
    LF_MEMBER = 0x150D
    LF_STMEMBER = 0x150E
    LF_METHOD = 0x150F
    LF_NESTTYPE = 0x1510
    LF_ONEMETHOD = 0x1511
    LF_NESTTYPEEX = 0x1512
    LF_INTERFACE = 0x1519
    LF_BINTERFACE = 0x151A


# Values below this are stored inline as an unsigned 16-bit number
LF_NUMERIC = 0x8000


class NumericLeaf(IntEnum):
    LF_CHAR = 0x8000
    LF_SHORT = 0x8001
    LF_USHORT = 0x8002
    LF_LONG = 0x8003
    LF_ULONG = 0x8004
    LF_QUADWORD = 0x8009
    LF_UQUADWORD = 0x800A
    LF_OCTWORD = 0x8017
    LF_UOCTWORD = 0x8018
