"""
Byte-based RLE, used to measure how well a table compresses.

Format: count byte followed by byte(s)
- If bit 7 clear: repeat next byte 'count' times
- If bit 7 set: output next (count & 0x7F) bytes literally
"""


def rle_encode_bytes(data):
    """RLE encode a byte string (runs of 2 or more identical bytes are emitted as runs)."""
    result = bytearray()
    i = 0
    n = len(data)

    while i < n:
        # Check for a run of the same byte
        run_start = i
        run_byte = data[i]
        j = i + 1
        while j < n and data[j] == run_byte:
            j += 1
        run_length = j - run_start

        if run_length >= 2:
            # Emit run
            while run_length > 0:
                emit = min(run_length, 0x7F)
                result.append(emit)
                result.append(run_byte)
                run_length -= emit
            i = j
        else:
            # Collect literals until next run >= 2 or end
            start = i
            i += 1
            while i < n:
                if i + 1 < n and data[i] == data[i + 1]:
                    break
                i += 1
            literal_count = i - start

            # Emit literals in chunks of max 0x7F
            pos = start
            while literal_count > 0:
                emit = min(literal_count, 0x7F)
                result.append(0x80 | emit)
                result.extend(data[pos:pos + emit])
                pos += emit
                literal_count -= emit

    return bytes(result)


def rle_size(data):
    """Size in bytes of the RLE encoded data."""
    return len(rle_encode_bytes(bytes(data)))
