"""Business modules built on the kernel.  Currently: monetary documents."""
