"""
Basic usage example for the vquant library.

This example demonstrates the fundamental operations shared by every quantizer:
- Training a quantizer on sample vectors
- Encoding and decoding single vectors and batches
- Comparing reconstruction error and compression across algorithms
"""

import numpy as np

from vquant import create_quantizer
from vquant.utils import reconstruction_error


def main():
    """Run basic usage example."""
    print("vquant - Basic Usage Example")
    print("=" * 50)

    # 1. Generate sample data
    print("\n1. Generating sample data...")
    rng = np.random.default_rng(42)
    vectors = rng.standard_normal((1000, 32))
    print(f"   Generated {len(vectors)} vectors of dimension {vectors.shape[1]}")

    # 2. Train and encode with a product quantizer
    print("\n2. Product quantization...")
    pq = create_quantizer("pq", {"m": 8, "k": 16, "max_iters": 50})
    pq.fit(vectors)

    code = pq.quantize(vectors[0])
    reconstructed = pq.dequantize(code)
    print(f"   Encoding: {code.tolist()}")
    print(f"   Distance to reconstruction: {pq.compute_distance(vectors[0], code):.4f}")
    print(f"   Reconstructed dimension: {reconstructed.dim}")

    # 3. Compare algorithms
    print("\n3. Comparing quantizers...")
    configs = {
        "binary": {"threshold": "mean"},
        "scalar": {"min": -3.0, "max": 3.0, "levels": 16},
        "product": {"m": 8, "k": 16, "max_iters": 50},
        "optimized_product": {"m": 8, "k": 16, "max_iters": 25, "n_rounds": 5},
        "tree": {"max_depth": 8},
        "residual": {"n_stages": 3, "k": 16, "max_iters": 25},
    }

    for name, config in configs.items():
        quantizer = create_quantizer(name, config).fit(vectors)
        stats = quantizer.get_stats()
        error = reconstruction_error(quantizer, vectors)
        print(
            f"   {name:<18} MSE: {error:.4f}  "
            f"compression: {stats['compression_ratio']:.1f}x"
        )

    print("\n" + "=" * 50)
    print("Basic usage example completed!")


if __name__ == "__main__":
    main()
