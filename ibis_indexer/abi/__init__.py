"""Cairo ABI types, event selectors and event decoding."""